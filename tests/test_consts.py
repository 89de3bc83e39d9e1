from cribl_mcp.consts import (
    API_PREFIX,
    ERROR_SNIPPET_LENGTH,
    LOCAL_TOKEN_LIFETIME_SECONDS,
    LOGIN_URL_PATH,
    PACKAGE_VERSION,
    SERVER_NAME,
    SUCCESS_STATUS_RANGE,
    TOKEN_SAFETY_MARGIN_SECONDS,
    TOKEN_URL_PATH,
    USER_AGENT,
)


class TestPackageConstants:
    """Test package constants are properly defined"""

    def test_package_version_defined(self):
        """Test that package version is defined"""
        assert isinstance(PACKAGE_VERSION, str)
        assert "." in PACKAGE_VERSION  # Should be semantic version

    def test_user_agent_format(self):
        """Test that user agent follows expected format"""
        assert USER_AGENT == f"{SERVER_NAME}/{PACKAGE_VERSION}"

    def test_url_path_constants(self):
        """Test that URL path constants are properly defined"""
        assert TOKEN_URL_PATH == "/oauth/token"
        assert LOGIN_URL_PATH.startswith(API_PREFIX)
        assert "auth/login" in LOGIN_URL_PATH


class TestBusinessConstants:
    def test_token_lifetimes(self):
        assert TOKEN_SAFETY_MARGIN_SECONDS == 60
        assert LOCAL_TOKEN_LIFETIME_SECONDS == 3600

    def test_success_range_is_2xx_only(self):
        assert 200 in SUCCESS_STATUS_RANGE
        assert 299 in SUCCESS_STATUS_RANGE
        assert 300 not in SUCCESS_STATUS_RANGE
        assert 199 not in SUCCESS_STATUS_RANGE

    def test_snippet_length(self):
        assert ERROR_SNIPPET_LENGTH == 100
