from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.victorops.com"
DEFAULT_TIMEOUT = 30.0


class ClientConfig(BaseModel):
    """Connection settings for one client. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=DEFAULT_BASE_URL)
    api_id: str
    api_key: str = Field(repr=False)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)


class Settings(BaseSettings):
    """Environment-backed settings for the command line front end.

    The library itself never reads the environment; callers hand a
    ``ClientConfig`` (or plain arguments) to ``VictorOpsClient``.
    """

    model_config = SettingsConfigDict(
        env_prefix="VICTOROPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_id: str | None = Field(default=None)
    api_key: str | None = Field(default=None, repr=False)
    base_url: str = Field(default=DEFAULT_BASE_URL)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    log_level: str = Field(default="WARNING")

    def client_config(self) -> ClientConfig | None:
        if not self.api_id or not self.api_key:
            return None
        return ClientConfig(
            base_url=self.base_url,
            api_id=self.api_id,
            api_key=self.api_key,
            timeout=self.timeout,
        )
