"""Deployment environment detection from the request Host header."""

DEVELOPMENT = "development"
PRODUCTION = "production"

_LOCAL_HOST_MARKERS = ("localhost", "127.0.0.1", "0.0.0.0", "::1")
_DEV_HOST_MARKERS = ("dev.azurewebsites.net", "test.azurewebsites.net")


def detect_environment(host: str | None) -> str:
    """Classify a Host header value as development or production.

    Local loopback hosts and dev/test app-service hosts are development;
    everything else, including a missing header, is production.
    """
    host = (host or "").lower()
    if any(marker in host for marker in _LOCAL_HOST_MARKERS):
        return DEVELOPMENT
    if any(marker in host for marker in _DEV_HOST_MARKERS):
        return DEVELOPMENT
    return PRODUCTION
