"""Azure CLI operations.

All functions use acr_publish.utils.shell.run() for command execution and
raise AuthenticationError on failures.
"""

from collections.abc import Callable

from acr_publish.exceptions import AuthenticationError
from acr_publish.utils.cancel import CancelScope
from acr_publish.utils.shell import ShellError, run


class AzureCLI:
    """Thin wrapper around the ``az`` executable.

    Args:
        binary: az executable name or path
        timeout: Per-command timeout in seconds
        on_command: Called with a printable form of each command before it runs
    """

    def __init__(
        self,
        binary: str = "az",
        timeout: float | None = 600,
        on_command: Callable[[str], None] | None = None,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.on_command = on_command

    def _run(self, args: list[str], display: str, scope: CancelScope | None) -> None:
        if self.on_command:
            self.on_command(display)
        run(
            [self.binary, *args],
            check=True,
            timeout=self.timeout,
            scope=scope,
            display=display,
        )

    def acr_login(self, registry: str, scope: CancelScope | None = None) -> None:
        """Log docker in to a registry using the current az session.

        Works for interactive sessions, service principals that already
        logged in, and managed identities alike.

        Args:
            registry: Registry short name
            scope: Cancel scope

        Raises:
            AuthenticationError: If az acr login fails
        """
        args = ["acr", "login", "--name", registry]
        try:
            self._run(args, f"{self.binary} {' '.join(args)}", scope)
        except ShellError as e:
            raise AuthenticationError(
                f"az acr login failed for registry '{registry}'",
                returncode=e.returncode,
                output=e.output,
                fix_hint="Run 'az login' or check that the identity has AcrPush on the registry",
            ) from e

    def login_service_principal(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scope: CancelScope | None = None,
    ) -> None:
        """Log the az CLI in with a service principal.

        Args:
            client_id: Application (client) ID
            client_secret: Client secret
            tenant_id: Directory (tenant) ID
            scope: Cancel scope

        Raises:
            AuthenticationError: If az login fails
        """
        args = [
            "login",
            "--service-principal",
            "-u",
            client_id,
            "-p",
            client_secret,
            "--tenant",
            tenant_id,
        ]
        display = (
            f"{self.binary} login --service-principal -u {client_id} -p *** "
            f"--tenant {tenant_id}"
        )
        try:
            self._run(args, display, scope)
        except ShellError as e:
            raise AuthenticationError(
                "Azure login with service principal failed",
                returncode=e.returncode,
                output=e.output.replace(client_secret, "***"),
                fix_hint="Check client_id, client_secret and tenant_id",
            ) from e
