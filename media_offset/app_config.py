from pydantic import BaseModel, ConfigDict

from media_offset.shared.config import config


def _opt(key: str) -> str | None:
    return (config.get(key) or "").strip() or None


class MediaScope(BaseModel):
    """Resource group + account pair that scopes every management call."""

    model_config = ConfigDict(frozen=True)

    resource_group: str
    account_name: str


class AppEnvironConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Media Services account
    AZURE_SUBSCRIPTION_ID: str | None = None
    AZURE_RESOURCE_GROUP: str | None = None
    AZURE_MEDIA_ACCOUNT_NAME: str | None = None
    AZURE_ARM_ENDPOINT: str = "https://management.azure.com"
    AZURE_MEDIA_API_VERSION: str = "2023-01-01"

    # AAD service principal
    AZURE_AAD_TENANT_ID: str | None = None
    AZURE_AAD_CLIENT_ID: str | None = None
    AZURE_AAD_SECRET: str | None = None
    AZURE_ARM_AAD_AUDIENCE: str = "https://management.core.windows.net"
    AZURE_AAD_AUTHORITY_HOST: str = "https://login.microsoftonline.com"

    # HTTP timeouts (seconds)
    MEDIA_API_TIMEOUT_SECONDS: float = 30
    MANIFEST_TIMEOUT_SECONDS: float = 15

    @classmethod
    def from_environ(cls) -> "AppEnvironConfig":
        """Build a snapshot from the current EnvironConfig contents."""
        return cls(
            AZURE_SUBSCRIPTION_ID=_opt("AZURE_SUBSCRIPTION_ID"),
            AZURE_RESOURCE_GROUP=_opt("AZURE_RESOURCE_GROUP"),
            AZURE_MEDIA_ACCOUNT_NAME=_opt("AZURE_MEDIA_ACCOUNT_NAME"),
            AZURE_ARM_ENDPOINT=_opt("AZURE_ARM_ENDPOINT") or "https://management.azure.com",
            AZURE_MEDIA_API_VERSION=_opt("AZURE_MEDIA_API_VERSION") or "2023-01-01",
            AZURE_AAD_TENANT_ID=_opt("AZURE_AAD_TENANT_ID"),
            AZURE_AAD_CLIENT_ID=_opt("AZURE_AAD_CLIENT_ID"),
            AZURE_AAD_SECRET=_opt("AZURE_AAD_SECRET"),
            AZURE_ARM_AAD_AUDIENCE=_opt("AZURE_ARM_AAD_AUDIENCE")
            or "https://management.core.windows.net",
            AZURE_AAD_AUTHORITY_HOST=_opt("AZURE_AAD_AUTHORITY_HOST")
            or "https://login.microsoftonline.com",
            MEDIA_API_TIMEOUT_SECONDS=float(_opt("MEDIA_API_TIMEOUT_SECONDS") or 30),
            MANIFEST_TIMEOUT_SECONDS=float(_opt("MANIFEST_TIMEOUT_SECONDS") or 15),
        )

    @property
    def scope(self) -> MediaScope:
        return MediaScope(
            resource_group=self.AZURE_RESOURCE_GROUP or "",
            account_name=self.AZURE_MEDIA_ACCOUNT_NAME or "",
        )


_app_environ_config: AppEnvironConfig | None = None


def get_app_environ_config() -> AppEnvironConfig:
    """Return the process-wide config snapshot, loaded once on first use."""
    global _app_environ_config
    if _app_environ_config is None:
        _app_environ_config = AppEnvironConfig.from_environ()
    return _app_environ_config
