"""High-value constants for the Cribl MCP package."""

# Package metadata
PACKAGE_VERSION = "0.2.0"
SERVER_NAME = "cribl-mcp-bridge"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
DEFAULT_CLOUD_AUTH_URL = "https://login.cribl.cloud"
DEFAULT_AUDIENCE = "https://api.cribl.cloud"
TOKEN_URL_PATH = "/oauth/token"
LOGIN_URL_PATH = "/api/v1/auth/login"
API_PREFIX = "/api/v1"

# Business logic consts
TOKEN_SAFETY_MARGIN_SECONDS = 60  # replace cloud tokens a minute early
LOCAL_TOKEN_LIFETIME_SECONDS = 3600  # login tokens carry no expiry
ERROR_SNIPPET_LENGTH = 100

# Success range policy: [200, 300), nothing else counts
SUCCESS_STATUS_RANGE = range(200, 300)
