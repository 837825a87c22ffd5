"""Azure Container Registry endpoint names.

ACR registries are addressed two ways: the short name used by the az CLI
(``myregistry``) and the login server used by docker
(``myregistry.azurecr.io``).
"""

ACR_DOMAIN_SUFFIX = ".azurecr.io"


def resolve_registry_host(name: str) -> str:
    """Return the fully qualified login server for a registry.

    Names that already end with the ACR domain are returned unchanged,
    so the function is idempotent.

    Args:
        name: Short or fully qualified registry name

    Returns:
        Login server host (e.g. 'myregistry.azurecr.io')
    """
    if name.endswith(ACR_DOMAIN_SUFFIX):
        return name
    return f"{name}{ACR_DOMAIN_SUFFIX}"


def registry_short_name(name: str) -> str:
    """Return the registry name as the az CLI expects it.

    Args:
        name: Short or fully qualified registry name

    Returns:
        Short name (e.g. 'myregistry')
    """
    if name.endswith(ACR_DOMAIN_SUFFIX):
        return name[: -len(ACR_DOMAIN_SUFFIX)]
    return name
