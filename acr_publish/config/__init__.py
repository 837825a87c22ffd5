"""Configuration management for the ACR publisher."""

from acr_publish.config.loader import load_config_file, parse_config, validate_config
from acr_publish.config.models import (
    AdminAuth,
    AuthMethod,
    AzureCLIAuth,
    Credentials,
    ManagedIdentityAuth,
    PublishConfig,
    ReleaseContext,
    ServicePrincipalAuth,
)
from acr_publish.config.settings import Settings

__all__ = [
    "PublishConfig",
    "ReleaseContext",
    "Credentials",
    "AuthMethod",
    "AzureCLIAuth",
    "ServicePrincipalAuth",
    "AdminAuth",
    "ManagedIdentityAuth",
    "Settings",
    "load_config_file",
    "parse_config",
    "validate_config",
]
