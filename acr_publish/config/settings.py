"""Process-wide runtime settings.

Read once at startup from ACR_PUBLISH_* environment variables.
Example: ACR_PUBLISH_DOCKER_BINARY=podman
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from acr_publish import __version__


class Settings(BaseSettings):
    """Tool locations, timeouts and the reported plugin version."""

    az_binary: str = Field(default="az", description="Azure CLI executable")
    docker_binary: str = Field(default="docker", description="Container tool executable")
    command_timeout: int = Field(
        default=600,
        ge=1,
        description="Timeout for each external command in seconds",
    )
    plugin_version: str = Field(
        default=__version__,
        description="Version reported to the host (set from build metadata)",
    )

    model_config = SettingsConfigDict(env_prefix="ACR_PUBLISH_", frozen=True)
