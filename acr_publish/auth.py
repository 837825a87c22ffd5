"""Registry authentication strategies.

One strategy per auth method:
- azure_cli: az acr login with the ambient az session
- service_principal: az login --service-principal, then az acr login
- admin: docker login with the admin user, password on stdin
- managed_identity: az acr login (az detects the identity itself)

Strategies register themselves with AuthStrategyRegistry. Every AuthMethod
must have exactly one strategy; ``AuthStrategyRegistry.missing()`` reports
any gap and the test suite asserts it is empty.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, cast

from acr_publish.config.models import (
    AdminAuth,
    AuthMethod,
    AzureCLIAuth,
    Credentials,
    ManagedIdentityAuth,
    ServicePrincipalAuth,
)
from acr_publish.exceptions import ConfigurationError
from acr_publish.registry import registry_short_name, resolve_registry_host
from acr_publish.tools.azure import AzureCLI
from acr_publish.tools.docker import DockerCLI
from acr_publish.utils.cancel import CancelScope


class AuthStrategy(ABC):
    """Abstract base class for registry login strategies."""

    method: ClassVar[AuthMethod]
    credentials_type: ClassVar[type]

    def __init__(self, azure: AzureCLI, docker: DockerCLI) -> None:
        self.azure = azure
        self.docker = docker

    @abstractmethod
    def login(
        self,
        registry: str,
        credentials: Credentials,
        scope: CancelScope | None = None,
    ) -> None:
        """Authenticate docker against the registry.

        Args:
            registry: Registry name as configured (short or fully qualified)
            credentials: Credential bundle for this strategy's method
            scope: Cancel scope

        Raises:
            AuthenticationError: If any login command fails
            CancellationError: If the scope is cancelled mid-login
        """


class AuthStrategyRegistry:
    """Registry mapping auth methods to their strategy classes."""

    _strategies: dict[AuthMethod, type[AuthStrategy]] = {}

    @classmethod
    def register(cls, strategy_class: type[AuthStrategy]) -> type[AuthStrategy]:
        """Register a strategy class.

        Can be used as a decorator:
            @AuthStrategyRegistry.register
            class AzureCLIStrategy(AuthStrategy):
                ...

        Args:
            strategy_class: Strategy class to register

        Returns:
            The registered class (for decorator usage)

        Raises:
            TypeError: If strategy_class does not declare its method
            ValueError: If another class already handles the method
        """
        method = getattr(strategy_class, "method", None)
        if not isinstance(method, AuthMethod):
            raise TypeError(
                f"Strategy {strategy_class.__name__}.method must be an AuthMethod, "
                f"got {type(method).__name__}: {method!r}"
            )

        existing = cls._strategies.get(method)
        if existing is not None and existing is not strategy_class:
            raise ValueError(
                f"Auth method '{method.value}' already handled by {existing.__name__}. "
                f"Cannot register {strategy_class.__name__}."
            )

        cls._strategies[method] = strategy_class
        return strategy_class

    @classmethod
    def get(cls, method: AuthMethod) -> type[AuthStrategy] | None:
        return cls._strategies.get(method)

    @classmethod
    def missing(cls) -> list[AuthMethod]:
        """Auth methods without a registered strategy."""
        return [m for m in AuthMethod if m not in cls._strategies]


@AuthStrategyRegistry.register
class AzureCLIStrategy(AuthStrategy):
    """Relies on an az session that is already logged in."""

    method: ClassVar[AuthMethod] = AuthMethod.AZURE_CLI
    credentials_type: ClassVar[type] = AzureCLIAuth

    def login(
        self,
        registry: str,
        credentials: Credentials,
        scope: CancelScope | None = None,
    ) -> None:
        self.azure.acr_login(registry_short_name(registry), scope=scope)


@AuthStrategyRegistry.register
class ServicePrincipalStrategy(AuthStrategy):
    """az login as a service principal, then az acr login.

    The registry login is never attempted if the Azure login fails.
    """

    method: ClassVar[AuthMethod] = AuthMethod.SERVICE_PRINCIPAL
    credentials_type: ClassVar[type] = ServicePrincipalAuth

    def login(
        self,
        registry: str,
        credentials: Credentials,
        scope: CancelScope | None = None,
    ) -> None:
        # authenticate() has already matched credentials_type
        principal = cast(ServicePrincipalAuth, credentials)
        self.azure.login_service_principal(
            principal.client_id,
            principal.client_secret.get_secret_value(),
            principal.tenant_id,
            scope=scope,
        )
        self.azure.acr_login(registry_short_name(registry), scope=scope)


@AuthStrategyRegistry.register
class AdminStrategy(AuthStrategy):
    """docker login against the login server with the admin user."""

    method: ClassVar[AuthMethod] = AuthMethod.ADMIN
    credentials_type: ClassVar[type] = AdminAuth

    def login(
        self,
        registry: str,
        credentials: Credentials,
        scope: CancelScope | None = None,
    ) -> None:
        admin = cast(AdminAuth, credentials)
        self.docker.login(
            resolve_registry_host(registry),
            admin.username,
            admin.password.get_secret_value(),
            scope=scope,
        )


@AuthStrategyRegistry.register
class ManagedIdentityStrategy(AuthStrategy):
    """Same command as azure_cli; kept separate so the two can diverge."""

    method: ClassVar[AuthMethod] = AuthMethod.MANAGED_IDENTITY
    credentials_type: ClassVar[type] = ManagedIdentityAuth

    def login(
        self,
        registry: str,
        credentials: Credentials,
        scope: CancelScope | None = None,
    ) -> None:
        self.azure.acr_login(registry_short_name(registry), scope=scope)


def authenticate(
    registry: str,
    credentials: Credentials,
    azure: AzureCLI,
    docker: DockerCLI,
    scope: CancelScope | None = None,
) -> None:
    """Log in to the registry with the strategy for the credential bundle.

    Args:
        registry: Registry name as configured (short or fully qualified)
        credentials: Active credential bundle
        azure: az CLI wrapper
        docker: docker CLI wrapper
        scope: Cancel scope

    Raises:
        ConfigurationError: If no strategy handles the bundle's method
        AuthenticationError: If a login command fails
        CancellationError: If the scope is cancelled mid-login
    """
    method = AuthMethod(credentials.method)
    strategy_class = AuthStrategyRegistry.get(method)
    if strategy_class is None:
        raise ConfigurationError(f"No authentication strategy for method '{method.value}'")
    if not isinstance(credentials, strategy_class.credentials_type):
        raise ConfigurationError(
            f"Credentials of type {type(credentials).__name__} do not match "
            f"auth method '{method.value}'"
        )
    strategy_class(azure, docker).login(registry, credentials, scope=scope)
