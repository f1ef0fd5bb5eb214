"""Configuration for the TEAM Engine driver."""

import aiohttp
from pydantic import BaseModel, Field, SecretStr, field_validator

DEFAULT_URL = "http://cite.opengeospatial.org/teamengine"


class TeamEngineConfig(BaseModel):
    """Configuration for the remote TEAM Engine."""

    url: str = DEFAULT_URL
    username: str | None = None
    password: SecretStr | None = None
    timeout_seconds: int = Field(default=1200, gt=0)
    probe_timeout_seconds: int = Field(default=30, gt=0)

    @field_validator("url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        if not value:
            raise ValueError("url must not be empty")
        return value if value.endswith("/") else value + "/"

    @property
    def suites_url(self) -> str:
        """URL listing the suites hosted on the remote service."""
        return self.url + "rest/suites"

    @property
    def credentials(self) -> aiohttp.BasicAuth | None:
        """Basic credentials, only when both username and password are set."""
        if self.username is None or self.password is None:
            return None
        return aiohttp.BasicAuth(self.username, self.password.get_secret_value())
