"""Custom exception hierarchy for the ACR publisher.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error
- 3: Authentication error
- 4: Publish (tag/push) error
- 5: Cancellation or timeout
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A configuration problem scoped to a single field.

    Attributes:
        field: Dotted config key the problem belongs to (e.g. 'auth.method')
        message: Human readable description
    """

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class AcrPublishError(Exception):
    """Base exception for all publisher errors.

    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(AcrPublishError):
    """Configuration errors.

    Raised when:
    - Required fields (registry, image, source_image) are missing
    - The auth method is not recognized
    - Credentials for the selected auth method are missing
    - A configuration file cannot be read or parsed

    All violations found by a validation pass are collected in ``errors``.
    """

    exit_code = 2

    def __init__(
        self,
        message: str,
        errors: list[FieldError] | None = None,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        self.errors = list(errors or [])
        if details is None and self.errors:
            details = "; ".join(str(e) for e in self.errors)
        super().__init__(message, details=details, fix_hint=fix_hint)


class _CommandFailure(AcrPublishError):
    """Failure of an external command, carrying its exit status and output."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        output: str = "",
        fix_hint: str | None = None,
    ) -> None:
        self.returncode = returncode
        self.output = output
        details = output.strip() or None
        if returncode is not None:
            details = f"Exit code: {returncode}" + (f"\n{details}" if details else "")
        super().__init__(message, details=details, fix_hint=fix_hint)


class AuthenticationError(_CommandFailure):
    """Registry login failures.

    Raised when:
    - az acr login fails
    - az login with a service principal fails
    - docker login with admin credentials fails
    """

    exit_code = 3


class PublishError(_CommandFailure):
    """Image publishing failures.

    Base class for tag and push errors. ``image`` is the reference the
    failing command was operating on.
    """

    exit_code = 4

    def __init__(
        self,
        message: str,
        image: str,
        returncode: int | None = None,
        output: str = "",
        fix_hint: str | None = None,
    ) -> None:
        self.image = image
        super().__init__(message, returncode=returncode, output=output, fix_hint=fix_hint)


class TagError(PublishError):
    """docker tag failed, or the source image is not available locally."""


class PushError(PublishError):
    """docker push failed."""


class CancellationError(AcrPublishError):
    """The operation was cancelled or ran past its deadline.

    The external process that was running at the time has been killed.
    """

    exit_code = 5

    def __init__(
        self,
        message: str,
        cmd: str | None = None,
        timed_out: bool = False,
    ) -> None:
        self.cmd = cmd
        self.timed_out = timed_out
        super().__init__(message, details=f"Command: {cmd}" if cmd else None)
