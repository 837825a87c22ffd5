"""Configuration loading and validation.

The host hands the publisher a loosely typed map. This module:
- Reads optional YAML/TOML configuration files for the CLI
- Collects every configuration problem in a single validation pass
- Builds the immutable PublishConfig once the map is valid
- Fills missing credentials from the standard Azure/ACR environment variables
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from acr_publish.config.models import (
    AdminAuth,
    AuthMethod,
    AzureCLIAuth,
    ManagedIdentityAuth,
    PublishConfig,
    ServicePrincipalAuth,
)
from acr_publish.exceptions import ConfigurationError, FieldError

# Environment variables consulted when a credential is not configured
CREDENTIAL_ENV_VARS = {
    "client_id": "AZURE_CLIENT_ID",
    "client_secret": "AZURE_CLIENT_SECRET",
    "tenant_id": "AZURE_TENANT_ID",
    "username": "ACR_USERNAME",
    "password": "ACR_PASSWORD",
}

VALID_AUTH_METHODS = [m.value for m in AuthMethod]

_TRUE_STRINGS = {"true", "1", "yes", "on"}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or pass --config with the right path",
        ) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML configuration file.

    Args:
        path: Path to the TOML file

    Returns:
        Parsed TOML as dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
            return data
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or pass --config with the right path",
        ) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a raw configuration map from a YAML or TOML file.

    A top-level ``acr`` section is unwrapped, so the publisher settings can
    live next to other tools' settings in a shared file.

    Args:
        path: Path to a .yml, .yaml or .toml file

    Returns:
        Raw configuration map

    Raises:
        ConfigurationError: If the file is missing, malformed or unsupported
    """
    if path.suffix in (".yml", ".yaml"):
        data = load_yaml(path)
    elif path.suffix == ".toml":
        data = load_toml(path)
    else:
        raise ConfigurationError(
            f"Unsupported config format: {path.suffix}",
            fix_hint="Use .yml, .yaml, or .toml extension",
        )

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {path}",
            details="Top level must be a mapping",
        )
    section = data.get("acr")
    if isinstance(section, dict):
        return section
    return data


def _get_str(raw: Mapping[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _get_bool(raw: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = raw.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, int):
        return value != 0
    return default


def _get_str_list(raw: Mapping[str, Any], key: str) -> list[str]:
    value = raw.get(key)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    items = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def _read_auth(
    raw: Mapping[str, Any],
    environ: Mapping[str, str],
) -> dict[str, str]:
    """Read the auth section, filling missing credentials from the environment."""
    section = raw.get("auth")
    if not isinstance(section, Mapping):
        section = {}

    method = section.get("method")
    if method is not None and not isinstance(method, str):
        # Never matches a method name, so validation reports it
        method = repr(method)
    auth = {"method": (method or "").strip() or AuthMethod.AZURE_CLI.value}
    for key, env_var in CREDENTIAL_ENV_VARS.items():
        auth[key] = _get_str(section, key) or environ.get(env_var, "").strip()
    return auth


def validate_config(
    raw: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> list[FieldError]:
    """Check a raw configuration map and collect every problem found.

    Args:
        raw: Configuration map from the host or a config file
        environ: Environment for credential fallbacks (defaults to os.environ)

    Returns:
        List of field errors, empty if the configuration is valid
    """
    if environ is None:
        environ = os.environ

    errors: list[FieldError] = []

    if not _get_str(raw, "registry"):
        errors.append(FieldError("registry", "ACR registry name is required"))
    if not _get_str(raw, "image"):
        errors.append(FieldError("image", "image name is required"))
    if not _get_str(raw, "source_image"):
        errors.append(FieldError("source_image", "source image is required"))

    auth = _read_auth(raw, environ)
    method = auth["method"]
    if method not in VALID_AUTH_METHODS:
        errors.append(
            FieldError(
                "auth.method",
                "auth method must be 'azure_cli', 'service_principal', 'admin', "
                "or 'managed_identity'",
            )
        )
    elif method == AuthMethod.SERVICE_PRINCIPAL.value:
        if not (auth["client_id"] and auth["client_secret"] and auth["tenant_id"]):
            errors.append(
                FieldError(
                    "auth",
                    "service principal requires client_id, client_secret, and tenant_id",
                )
            )
    elif method == AuthMethod.ADMIN.value:
        if not (auth["username"] and auth["password"]):
            errors.append(FieldError("auth", "admin auth requires username and password"))

    return errors


def _build_credentials(
    auth: dict[str, str],
) -> AzureCLIAuth | ServicePrincipalAuth | AdminAuth | ManagedIdentityAuth:
    method = AuthMethod(auth["method"])
    if method is AuthMethod.SERVICE_PRINCIPAL:
        return ServicePrincipalAuth(
            client_id=auth["client_id"],
            client_secret=auth["client_secret"],
            tenant_id=auth["tenant_id"],
        )
    if method is AuthMethod.ADMIN:
        return AdminAuth(username=auth["username"], password=auth["password"])
    if method is AuthMethod.MANAGED_IDENTITY:
        return ManagedIdentityAuth()
    return AzureCLIAuth()


def parse_config(
    raw: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> PublishConfig:
    """Validate a raw configuration map and build the PublishConfig.

    Args:
        raw: Configuration map from the host or a config file
        environ: Environment for credential fallbacks (defaults to os.environ)

    Returns:
        Immutable PublishConfig

    Raises:
        ConfigurationError: With all collected field errors if invalid
    """
    if environ is None:
        environ = os.environ

    errors = validate_config(raw, environ)
    if errors:
        raise ConfigurationError(
            "Invalid configuration",
            errors=errors,
            fix_hint="Run 'acr-publish validate' to list every problem",
        )

    try:
        return PublishConfig(
            registry=_get_str(raw, "registry"),
            repository=_get_str(raw, "repository"),
            image=_get_str(raw, "image"),
            source_image=_get_str(raw, "source_image"),
            tags=tuple(_get_str_list(raw, "tags")),
            dry_run=_get_bool(raw, "dry_run"),
            auth=_build_credentials(_read_auth(raw, environ)),
        )
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            errors=[
                FieldError(".".join(str(p) for p in err["loc"]), err["msg"])
                for err in e.errors()
            ],
        ) from e
