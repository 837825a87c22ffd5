"""Container tool operations (docker or a CLI-compatible replacement).

All functions use acr_publish.utils.shell.run() for command execution.
Login failures raise AuthenticationError, tag failures TagError and push
failures PushError.
"""

import subprocess
from collections.abc import Callable

from acr_publish.exceptions import AuthenticationError, PushError, TagError
from acr_publish.utils.cancel import CancelScope
from acr_publish.utils.shell import ShellError, run


class DockerCLI:
    """Thin wrapper around the ``docker`` executable.

    Args:
        binary: Container tool executable name or path
        timeout: Per-command timeout in seconds
        on_command: Called with a printable form of each command before it runs
    """

    def __init__(
        self,
        binary: str = "docker",
        timeout: float | None = 600,
        on_command: Callable[[str], None] | None = None,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.on_command = on_command

    def _run(
        self,
        args: list[str],
        scope: CancelScope | None,
        input: str | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        if self.on_command:
            self.on_command(f"{self.binary} {' '.join(args)}")
        return run(
            [self.binary, *args],
            check=check,
            timeout=self.timeout,
            input=input,
            scope=scope,
        )

    def login(
        self,
        registry_host: str,
        username: str,
        password: str,
        scope: CancelScope | None = None,
    ) -> None:
        """Log in to a registry with a username and password.

        The password is piped through stdin so it never shows up in the
        process list.

        Args:
            registry_host: Registry login server
            username: User name
            password: Password or token
            scope: Cancel scope

        Raises:
            AuthenticationError: If docker login fails
        """
        try:
            self._run(
                ["login", registry_host, "-u", username, "--password-stdin"],
                scope,
                input=password,
            )
        except ShellError as e:
            raise AuthenticationError(
                f"docker login to {registry_host} failed",
                returncode=e.returncode,
                output=e.output,
                fix_hint="Check that the admin user is enabled and the credentials are current",
            ) from e

    def tag(self, source: str, target: str, scope: CancelScope | None = None) -> None:
        """Tag a local image with a new reference.

        Args:
            source: Existing local image reference
            target: New reference
            scope: Cancel scope

        Raises:
            TagError: If docker tag fails
        """
        try:
            self._run(["tag", source, target], scope)
        except ShellError as e:
            raise TagError(
                f"Failed to tag {source} as {target}",
                image=target,
                returncode=e.returncode,
                output=e.output,
            ) from e

    def push(self, target: str, scope: CancelScope | None = None) -> None:
        """Push an image reference to its registry.

        Args:
            target: Fully qualified image reference
            scope: Cancel scope

        Raises:
            PushError: If docker push fails
        """
        try:
            self._run(["push", target], scope)
        except ShellError as e:
            raise PushError(
                f"Failed to push {target}",
                image=target,
                returncode=e.returncode,
                output=e.output,
                fix_hint="Check the registry login and that the identity can push",
            ) from e

    def inspect_image(
        self, ref: str, scope: CancelScope | None = None
    ) -> subprocess.CompletedProcess[str]:
        """Run ``docker image inspect`` without raising on a non-zero exit.

        A non-zero exit can mean the image is missing, but also that the
        daemon is unreachable; callers decide from the returned output.

        Args:
            ref: Image reference
            scope: Cancel scope

        Returns:
            CompletedProcess of the inspect command
        """
        return self._run(["image", "inspect", ref], scope, check=False)
