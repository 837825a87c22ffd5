"""Publish container images to Azure Container Registry."""

__version__ = "0.1.0"

from acr_publish.exceptions import (  # noqa: E402
    AcrPublishError,
    AuthenticationError,
    CancellationError,
    ConfigurationError,
    FieldError,
    PublishError,
    PushError,
    TagError,
)

__all__ = [
    "__version__",
    "AcrPublishError",
    "ConfigurationError",
    "FieldError",
    "AuthenticationError",
    "PublishError",
    "TagError",
    "PushError",
    "CancellationError",
]
