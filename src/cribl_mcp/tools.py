"""MCP tools"""

import logging
from typing import Any, Literal

from .client import CriblClient
from .models import Envelope, WorkerGroup

logger = logging.getLogger("cribl-mcp.tools")

ProductType = Literal["stream", "edge", "search"]


class Tools:
    """MCP tools sharing one client.

    Every method returns an `Envelope`; worker group names are optional
    wherever a sensible default can be resolved.
    """

    def __init__(self, client: CriblClient):
        self.client = client
        logger.info("tools initialized")

    # Worker groups

    async def list_worker_groups(
        self, product_type: ProductType | Literal["all"] = "stream"
    ) -> Envelope:
        """List worker groups, optionally filtered by product type"""
        result = await self.client.list_worker_groups()
        if not result.success:
            return Envelope.fail(f"Error listing worker groups: {result.error}")

        groups = [
            g for g in result.data if product_type == "all" or g.product == product_type
        ]
        logger.info(
            f"Found {len(groups)} worker groups matching filter '{product_type}'"
        )
        return Envelope.ok([g.to_json() for g in groups])

    async def resolve_group_name(
        self, group_name: str | None, product_type: ProductType = "stream"
    ) -> Envelope[str]:
        """Validate an explicit group name, or pick the only group of a product.

        An explicit name must exist. Without one, exactly one group of the
        given product type must exist; none or several is an error listing
        the candidates.
        """
        result = await self.client.list_worker_groups()
        if not result.success:
            return Envelope.fail(f"Failed to list worker groups: {result.error}")

        all_ids = [g.id for g in result.data]

        if group_name:
            if group_name not in all_ids:
                return Envelope.fail(
                    f"Worker group '{group_name}' not found. "
                    f"Available groups are: [{', '.join(all_ids)}]"
                )
            return Envelope.ok(group_name)

        logger.debug(f"No group name given, looking up default '{product_type}' group")
        candidates = _by_product(result.data, product_type)
        if len(candidates) == 1:
            logger.info(f"Using sole '{product_type}' group {candidates[0].id}")
            return Envelope.ok(candidates[0].id)
        if not candidates:
            return Envelope.fail(
                f"No worker groups found for default product type '{product_type}'. "
                "Please specify a groupName. "
                f"Available groups are: [{', '.join(all_ids)}]"
            )
        return Envelope.fail(
            f"Multiple worker groups found for default product type '{product_type}': "
            f"[{', '.join(g.id for g in candidates)}]. "
            "Please specify the 'groupName' argument."
        )

    async def restart_worker_group(self, group_name: str | None = None) -> Envelope:
        """Restart the workers of a group"""
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        result = await self.client.restart_worker_group(group.data)
        if not result.success:
            return Envelope.fail(f"Error restarting workers: {result.error}")
        return result

    # Pipelines

    async def get_pipelines(self, group_name: str | None = None) -> Envelope:
        """List pipelines of a group"""
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        result = await self.client.get_pipelines(group.data)
        if not result.success:
            return Envelope.fail(
                f"Error fetching pipelines for group {group.data}: {result.error}"
            )
        return Envelope.ok([p.to_json() for p in result.data])

    async def get_pipeline_config(
        self, pipeline_id: str, group_name: str | None = None
    ) -> Envelope:
        """Get one pipeline, listing the valid IDs when it does not exist"""
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group

        if not pipeline_id or not pipeline_id.strip():
            valid = await self._valid_pipeline_ids(group.data)
            return Envelope.fail(
                f"Pipeline ID argument is required and cannot be empty. {valid}"
            )

        result = await self.client.get_pipeline(group.data, pipeline_id)
        if result.success:
            return Envelope.ok(result.data.to_json())

        if _is_not_found(result.error):
            logger.info(
                f"Pipeline '{pipeline_id}' not found in group '{group.data}', "
                "fetching valid IDs"
            )
            valid = await self._valid_pipeline_ids(group.data)
            return Envelope.fail(
                f"Pipeline ID '{pipeline_id}' not found "
                f"in group '{group.data}'. {valid}"
            )
        return result

    async def set_pipeline_config(
        self, pipeline_id: str, config: dict[str, Any], group_name: str | None = None
    ) -> Envelope:
        """Replace the configuration of a pipeline"""
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        result = await self.client.set_pipeline_config(group.data, pipeline_id, config)
        if not result.success:
            return Envelope.fail(
                f"Error setting pipeline config for {pipeline_id} "
                f"in group {group.data}: {result.error}"
            )
        return Envelope.ok(result.data.to_json())

    # Sources

    async def get_sources(self, group_name: str | None = None) -> Envelope:
        """List sources of a group"""
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        result = await self.client.get_sources(group.data)
        if not result.success:
            return Envelope.fail(
                f"Error fetching sources for group {group.data}: {result.error}"
            )
        return Envelope.ok([s.to_json() for s in result.data])

    # Metrics and version control

    async def get_system_metrics(
        self, group_name: str | None = None, metric_filter: str | None = None
    ) -> Envelope:
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        return await self.client.get_system_metrics(group.data, metric_filter)

    async def get_version_status(self, group_name: str | None = None) -> Envelope:
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        return await self.client.get_version_status(group.data)

    async def commit_changes(
        self, message: str, group_name: str | None = None
    ) -> Envelope:
        if not message or not message.strip():
            return Envelope.fail("A commit message is required.")
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        return await self.client.commit(group.data, message)

    async def deploy_changes(
        self, version: str, group_name: str | None = None
    ) -> Envelope:
        if not version or not version.strip():
            return Envelope.fail("A commit version to deploy is required.")
        group = await self.resolve_group_name(group_name)
        if not group.success:
            return group
        return await self.client.deploy(group.data, version)

    async def _valid_pipeline_ids(self, group: str) -> str:
        pipelines = await self.client.get_pipelines(group)
        if not pipelines.success:
            return f"Failed to retrieve list of valid IDs: {pipelines.error}"
        ids = ", ".join(p.id for p in pipelines.data) or "None found"
        return f"Valid pipeline IDs are: [{ids}]"


def _by_product(
    groups: list[WorkerGroup], product_type: ProductType
) -> list[WorkerGroup]:
    return [g for g in groups if g.product == product_type]


def _is_not_found(error: str | None) -> bool:
    return bool(error) and "(404)" in error and "not found" in error.lower()
