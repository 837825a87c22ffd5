"""Wrappers around the external command-line tools (az, docker)."""

from acr_publish.tools.azure import AzureCLI
from acr_publish.tools.docker import DockerCLI

__all__ = ["AzureCLI", "DockerCLI"]
