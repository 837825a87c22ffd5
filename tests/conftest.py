"""Pytest fixtures for ACR publisher tests.

Provides common fixtures for:
- Temporary directories and config files
- Minimal valid configuration maps
- Release metadata
- Mocked az/docker wrappers and a capturing console
"""

import io
import os
import subprocess
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml
from rich.console import Console

from acr_publish.config.loader import CREDENTIAL_ENV_VARS
from acr_publish.config.models import ReleaseContext
from acr_publish.tools.azure import AzureCLI
from acr_publish.tools.docker import DockerCLI


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return the smallest valid configuration map.

    Returns:
        Configuration dictionary
    """
    return {
        "registry": "myregistry",
        "image": "myapp",
        "source_image": "myapp:latest",
    }


@pytest.fixture
def config_file(temp_dir: Path, minimal_config: dict[str, Any]) -> Path:
    """Write the minimal configuration to a YAML file.

    Returns:
        Path to config file
    """
    path = temp_dir / "acr.yml"
    path.write_text(yaml.safe_dump({**minimal_config, "tags": ["{{version}}", "latest"]}))
    return path


@pytest.fixture
def release() -> ReleaseContext:
    """Return release metadata for version 1.0.0."""
    return ReleaseContext(
        version="1.0.0",
        previous_version="0.9.0",
        tag_name="v1.0.0",
        branch="main",
        release_type="stable",
    )


@pytest.fixture
def azure() -> MagicMock:
    """Mocked az CLI wrapper."""
    return MagicMock(spec=AzureCLI)


@pytest.fixture
def docker() -> MagicMock:
    """Mocked docker CLI wrapper; the source image exists."""
    mock = MagicMock(spec=DockerCLI)
    mock.inspect_image.return_value = subprocess.CompletedProcess([], 0, stdout="[]", stderr="")
    return mock


@pytest.fixture
def output() -> io.StringIO:
    """Buffer receiving console output."""
    return io.StringIO()


@pytest.fixture
def test_console(output: io.StringIO) -> Console:
    """Wide, uncolored console writing to ``output``."""
    return Console(file=output, width=200, color_system=None)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clean credential and settings environment variables.

    Removes AZURE_*/ACR_* credential variables and ACR_PUBLISH_* settings.
    """
    names = set(CREDENTIAL_ENV_VARS.values())
    old_env = {}
    for key in list(os.environ.keys()):
        if key in names or key.startswith("ACR_PUBLISH_"):
            old_env[key] = os.environ.pop(key)

    yield

    os.environ.update(old_env)
