"""Pydantic v2 models for the publisher configuration.

These models provide:
- Type-safe, immutable configuration
- A credential bundle modeled as a discriminated union on ``method``
- Default values (azure_cli auth, a single ``{{version}}`` tag)

Instances are built from the raw host map by acr_publish.config.loader.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_TAG_TEMPLATE = "{{version}}"


class AuthMethod(str, Enum):
    """Supported registry authentication methods."""

    AZURE_CLI = "azure_cli"
    SERVICE_PRINCIPAL = "service_principal"
    ADMIN = "admin"
    MANAGED_IDENTITY = "managed_identity"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class AzureCLIAuth(_Frozen):
    """Use the ambient az CLI session."""

    method: Literal["azure_cli"] = "azure_cli"


class ServicePrincipalAuth(_Frozen):
    """Log in to Azure with a service principal, then to the registry."""

    method: Literal["service_principal"] = "service_principal"
    client_id: str = Field(min_length=1, description="Application (client) ID")
    client_secret: SecretStr = Field(description="Client secret")
    tenant_id: str = Field(min_length=1, description="Directory (tenant) ID")


class AdminAuth(_Frozen):
    """docker login with the registry's admin user."""

    method: Literal["admin"] = "admin"
    username: str = Field(min_length=1, description="Admin user name")
    password: SecretStr = Field(description="Admin password")


class ManagedIdentityAuth(_Frozen):
    """Managed identity; az acr login picks the identity up automatically."""

    method: Literal["managed_identity"] = "managed_identity"


Credentials = Annotated[
    AzureCLIAuth | ServicePrincipalAuth | AdminAuth | ManagedIdentityAuth,
    Field(discriminator="method"),
]


class PublishConfig(_Frozen):
    """Validated configuration for one publish invocation."""

    registry: str = Field(min_length=1, description="Short or fully qualified registry name")
    repository: str = Field(default="", description="Optional namespace for the image path")
    image: str = Field(min_length=1, description="Image name in the registry")
    source_image: str = Field(min_length=1, description="Local image reference to tag from")
    tags: tuple[str, ...] = Field(
        default=(DEFAULT_TAG_TEMPLATE,),
        description="Ordered tag templates",
    )
    dry_run: bool = Field(default=False, description="Skip all mutating commands")
    auth: Credentials = Field(default_factory=AzureCLIAuth)

    @field_validator("tags")
    @classmethod
    def default_tags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            return (DEFAULT_TAG_TEMPLATE,)
        return v

    @property
    def image_path(self) -> str:
        """Image path inside the registry: 'repository/image' or 'image'."""
        if self.repository:
            return f"{self.repository}/{self.image}"
        return self.image


class ReleaseContext(_Frozen):
    """Release metadata supplied by the host, used for tag templates."""

    version: str = ""
    previous_version: str = ""
    tag_name: str = ""
    branch: str = ""
    release_type: str = ""
