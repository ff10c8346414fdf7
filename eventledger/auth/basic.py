"""HTTP Basic authentication."""
from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from typing import Optional
import secrets
import structlog

log = structlog.get_logger()

# auto_error is off so disabled auth does not demand credentials
basic_scheme = HTTPBasic(auto_error=False)


class BasicAuthenticator:
    """
    Single-account Basic auth check.

    Credentials come from API_USERNAME / API_PASSWORD. Authentication is
    skipped unless REQUIRE_AUTH is set and both credentials are configured.
    """

    def __init__(self, username: str, password: str, required: bool = False):
        self._username = username
        self._password = password
        self.required = required
        if required and not self.configured:
            log.warning("auth.disabled", reason="no_credentials_configured")

    @classmethod
    def from_settings(cls, settings) -> "BasicAuthenticator":
        return cls(settings.API_USERNAME, settings.API_PASSWORD, required=settings.REQUIRE_AUTH)

    @property
    def configured(self) -> bool:
        return bool(self._username and self._password)

    @property
    def enabled(self) -> bool:
        return self.required and self.configured

    def validate(self, username: str, password: str) -> bool:
        """
        Compare credentials in constant time.

        Returns:
            True if both username and password match
        """
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return user_ok and pass_ok


async def verify_basic_auth(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Security(basic_scheme),
) -> str:
    """
    Dependency to verify Basic credentials.

    Returns:
        Authenticated username, or "anonymous" when auth is disabled

    Raises:
        HTTPException: If credentials are missing or wrong
    """
    authenticator: BasicAuthenticator = request.app.state.authenticator
    if not authenticator.enabled:
        return "anonymous"

    if credentials is None or not authenticator.validate(credentials.username, credentials.password):
        log.warning("auth.failed", reason="missing_credentials" if credentials is None else "invalid_credentials")
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

    log.debug("auth.success")
    return credentials.username
