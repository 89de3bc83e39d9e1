"""Cribl MCP server implementation."""

import logging
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from .client import CriblClient
from .config import get_config, setup_logging
from .consts import SERVER_NAME
from .exceptions import ConfigError
from .models import Envelope
from .tools import Tools

logger = logging.getLogger("cribl-mcp.server")

GROUP_NAME_HELP = (
    "Optional: The name of the Worker Group/Fleet. If omitted, defaults to "
    "attempting to use Cribl Stream and if only one group exists for Stream, "
    "it will use that sole group."
)


def create_mcp_server(tools: Tools) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        tools: Tools instance the registered tool functions delegate to.

    Returns:
        Configured FastMCP server instance.
    """
    logger.debug("Creating MCP server")
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions="""
        Cribl MCP bridge.

        This MCP server allows you to:
        1. Inspect worker groups, pipelines, sources and system metrics.
        2. Change pipeline configuration, then commit and deploy it.
        """,
    )

    # ===== WORKER GROUP TOOLS =====

    @mcp.tool(name="cribl_listWorkerGroups")
    async def list_worker_groups(
        productType: Literal["stream", "edge", "search", "all"] = Field(
            "stream",
            description="Filter groups by product type (stream, edge, search, all). "
            "Defaults to stream.",
        ),
    ) -> Envelope:
        """List the worker groups (Stream) and fleets (Edge) of the leader."""
        logger.info(f"[Tool Call] cribl_listWorkerGroups (filter: {productType})")
        return _logged(
            "cribl_listWorkerGroups", await tools.list_worker_groups(productType)
        )

    @mcp.tool(name="cribl_restartWorkerGroup")
    async def restart_worker_group(
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Restart the workers of a worker group."""
        logger.info(f"[Tool Call] cribl_restartWorkerGroup (group: {groupName})")
        return _logged(
            "cribl_restartWorkerGroup", await tools.restart_worker_group(groupName)
        )

    # ===== PIPELINE AND SOURCE TOOLS =====

    @mcp.tool(name="cribl_getPipelines")
    async def get_pipelines(
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """List the pipelines configured in a worker group."""
        logger.info(f"[Tool Call] cribl_getPipelines (group: {groupName})")
        return _logged(
            "cribl_getPipelines", await tools.get_pipelines(groupName)
        )

    @mcp.tool(name="cribl_getPipelineConfig")
    async def get_pipeline_config(
        pipelineId: str = Field(
            ..., description="The ID of the pipeline to retrieve configuration for."
        ),
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Get the full configuration of one pipeline."""
        logger.info(
            f"[Tool Call] cribl_getPipelineConfig (group: {groupName}, id: {pipelineId})"
        )
        return _logged(
            "cribl_getPipelineConfig",
            await tools.get_pipeline_config(pipelineId, groupName),
        )

    @mcp.tool(name="cribl_setPipelineConfig")
    async def set_pipeline_config(
        pipelineId: str = Field(
            ..., description="The ID of the pipeline to configure."
        ),
        config: dict[str, Any] = Field(
            ...,
            description="The pipeline configuration payload expected by the API, "
            "typically structured as { id: 'pipeline-id', conf: { ... } }.",
        ),
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Update the configuration of one pipeline (commit and deploy separately)."""
        logger.info(
            f"[Tool Call] cribl_setPipelineConfig (group: {groupName}, id: {pipelineId})"
        )
        return _logged(
            "cribl_setPipelineConfig",
            await tools.set_pipeline_config(pipelineId, config, groupName),
        )

    @mcp.tool(name="cribl_getSources")
    async def get_sources(
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """List the sources (inputs) configured in a worker group."""
        logger.info(f"[Tool Call] cribl_getSources (group: {groupName})")
        return _logged(
            "cribl_getSources", await tools.get_sources(groupName)
        )

    # ===== METRICS AND VERSION CONTROL TOOLS =====

    @mcp.tool(name="cribl_getSystemMetrics")
    async def get_system_metrics(
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
        filterExpr: str | None = Field(
            None, description="Optional: metrics filter expression."
        ),
    ) -> Envelope:
        """Get system metrics (throughput, health) for a worker group."""
        logger.info(f"[Tool Call] cribl_getSystemMetrics (group: {groupName})")
        return _logged(
            "cribl_getSystemMetrics",
            await tools.get_system_metrics(groupName, filterExpr),
        )

    @mcp.tool(name="cribl_getVersionStatus")
    async def get_version_status(
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Show uncommitted configuration changes for a worker group."""
        logger.info(f"[Tool Call] cribl_getVersionStatus (group: {groupName})")
        return _logged(
            "cribl_getVersionStatus", await tools.get_version_status(groupName)
        )

    @mcp.tool(name="cribl_commitChanges")
    async def commit_changes(
        message: str = Field(..., description="Commit message."),
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Commit pending configuration changes. Returns the new commit version."""
        logger.info(f"[Tool Call] cribl_commitChanges (group: {groupName})")
        return _logged(
            "cribl_commitChanges", await tools.commit_changes(message, groupName)
        )

    @mcp.tool(name="cribl_deployChanges")
    async def deploy_changes(
        version: str = Field(..., description="Commit version to deploy."),
        groupName: str | None = Field(None, description=GROUP_NAME_HELP),
    ) -> Envelope:
        """Deploy a committed configuration version to a worker group."""
        logger.info(
            f"[Tool Call] cribl_deployChanges (group: {groupName}, version: {version})"
        )
        return _logged(
            "cribl_deployChanges", await tools.deploy_changes(version, groupName)
        )

    logger.info("MCP server created")
    return mcp


def _logged(tool_name: str, result: Envelope) -> Envelope:
    if result.success:
        logger.info(f"[Tool Success] {tool_name}")
    else:
        logger.error(f"[Tool Error] {tool_name}: {result.error}")
    return result


def main() -> None:
    """Run the MCP server over stdio."""
    try:
        config = get_config()
    except ValidationError as e:
        raise ConfigError(
            "Invalid Cribl configuration",
            errors=[err["msg"] for err in e.errors()],
            suggestions=[
                "Set CRIBL_BASE_URL and CRIBL_AUTH_TYPE ('cloud' or 'local')",
                "For cloud set CRIBL_CLIENT_ID and CRIBL_CLIENT_SECRET",
                "For local set CRIBL_USERNAME and CRIBL_PASSWORD",
            ],
        ) from e

    setup_logging(config.log_level)
    logger.info(
        f"Config loaded: auth type {config.auth_type}, base URL {config.base_url}"
    )

    mcp = create_mcp_server(Tools(CriblClient(config)))
    try:
        logger.info("Starting MCP server on stdio")
        mcp.run(transport="stdio")
    except Exception as e:
        logger.error(f"Server failed: {e}")
        raise


if __name__ == "__main__":
    main()
