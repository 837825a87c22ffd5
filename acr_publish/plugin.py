"""Release host adapter.

The release host calls the plugin once per release event with a raw
configuration map and the release metadata. Failures come back as an
unsuccessful ExecuteResponse rather than an exception, so the host can
report them alongside its other plugins.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rich.console import Console

from acr_publish.config.loader import parse_config, validate_config
from acr_publish.config.models import PublishConfig, ReleaseContext
from acr_publish.config.settings import Settings
from acr_publish.exceptions import AcrPublishError, FieldError
from acr_publish.utils.cancel import CancelScope
from acr_publish.workflow import PublishResult, PublishWorkflow


class Hook(Enum):
    """Release lifecycle hooks."""

    POST_PUBLISH = "post-publish"


@dataclass
class PluginInfo:
    """Plugin metadata reported to the host."""

    name: str
    version: str
    description: str
    hooks: list[Hook] = field(default_factory=list)


@dataclass
class ValidateResponse:
    """Result of a configuration check."""

    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class ExecuteRequest:
    """A single invocation from the host."""

    config: Mapping[str, Any]
    context: ReleaseContext = field(default_factory=ReleaseContext)
    hook: Hook = Hook.POST_PUBLISH
    dry_run: bool = False


@dataclass
class ExecuteResponse:
    """Structured response handed back to the host."""

    success: bool
    message: str
    outputs: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class ACRPlugin:
    """Pushes container images to Azure Container Registry."""

    name = "acr"
    description = "Push container images to Azure Container Registry (ACR)"

    def __init__(
        self,
        settings: Settings | None = None,
        console: Console | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.console = console
        self.environ = environ

    def get_info(self) -> PluginInfo:
        return PluginInfo(
            name=self.name,
            version=self.settings.plugin_version,
            description=self.description,
            hooks=[Hook.POST_PUBLISH],
        )

    def validate(self, config: Mapping[str, Any]) -> ValidateResponse:
        """Collect every problem in a raw configuration map.

        Args:
            config: Raw configuration map

        Returns:
            ValidateResponse listing all field errors
        """
        return ValidateResponse(errors=validate_config(config, self.environ))

    def publish(
        self,
        request: ExecuteRequest,
        scope: CancelScope | None = None,
        verbose: bool = False,
    ) -> tuple[PublishConfig, PublishResult]:
        """Parse the request's configuration and run the publish workflow.

        Args:
            request: Host request with config, release context and dry-run flag
            scope: Cancel scope; defaults to no deadline
            verbose: Print each external command before running it

        Returns:
            The parsed configuration and the publish result

        Raises:
            AcrPublishError: Any configuration, auth, tag, push or cancellation error
        """
        config = parse_config(request.config, self.environ)
        kwargs: dict[str, Any] = {
            "dry_run": request.dry_run,
            "scope": scope if scope is not None else CancelScope(),
            "verbose": verbose,
        }
        if self.console is not None:
            kwargs["console"] = self.console
        workflow = PublishWorkflow.from_settings(config, request.context, self.settings, **kwargs)
        return config, workflow.run()

    def execute(
        self,
        request: ExecuteRequest,
        scope: CancelScope | None = None,
        verbose: bool = False,
    ) -> ExecuteResponse:
        """Run the publish for one release event.

        Args:
            request: Host request with config, release context and dry-run flag
            scope: Cancel scope; defaults to no deadline
            verbose: Print each external command before running it

        Returns:
            ExecuteResponse with the output map on success
        """
        try:
            _, result = self.publish(request, scope=scope, verbose=verbose)
        except AcrPublishError as e:
            return ExecuteResponse(success=False, message=e.message, error=str(e))

        count = len(result.pushed_images)
        message = f"Successfully pushed {count} image(s) to ACR"
        if result.dry_run:
            message += " (dry run)"
        return ExecuteResponse(success=True, message=message, outputs=result.to_outputs())
