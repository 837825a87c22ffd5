"""Publish workflow orchestration.

Coordinates one publish invocation:
1. Merge dry-run flags from config and request
2. Resolve tag templates
3. Resolve the registry login server
4. Check the source image and authenticate (skipped in dry-run)
5. Tag and push each resolved tag, in order, stopping at the first failure

Tags already pushed before a failure stay in the registry; re-running the
same publish is safe because pushing an existing tag is a no-op.
"""

from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape

from acr_publish.auth import authenticate
from acr_publish.config.models import PublishConfig, ReleaseContext
from acr_publish.config.settings import Settings
from acr_publish.exceptions import TagError
from acr_publish.registry import resolve_registry_host
from acr_publish.tags import resolve_tags
from acr_publish.tools.azure import AzureCLI
from acr_publish.tools.docker import DockerCLI
from acr_publish.utils.cancel import CancelScope

console = Console()


@dataclass
class PublishResult:
    """Outcome of a successful publish.

    Attributes:
        registry: Registry login server
        repository: Namespace used for the image path (may be empty)
        tags: Resolved tags
        pushed_images: References pushed, or that would be pushed in dry-run
        dry_run: Whether nothing was actually pushed
    """

    registry: str
    repository: str
    tags: list[str]
    pushed_images: list[str] = field(default_factory=list)
    dry_run: bool = False

    def to_outputs(self) -> dict[str, Any]:
        """Output map returned to the release host."""
        return {
            "registry": self.registry,
            "repository": self.repository,
            "tags": list(self.tags),
            "pushed_images": list(self.pushed_images),
        }


def image_reference(registry_host: str, image_path: str, tag: str) -> str:
    """Build a fully qualified image reference 'host/path:tag'."""
    return f"{registry_host}/{image_path}:{tag}"


@dataclass
class PublishWorkflow:
    """Publishes the source image to ACR under every resolved tag."""

    config: PublishConfig
    release: ReleaseContext
    azure: AzureCLI = field(default_factory=AzureCLI)
    docker: DockerCLI = field(default_factory=DockerCLI)
    dry_run: bool = False
    scope: CancelScope = field(default_factory=CancelScope)
    console: Console = field(default_factory=lambda: console)
    verbose: bool = False

    def __post_init__(self) -> None:
        """Either source enabling dry-run suppresses all mutating actions."""
        self.dry_run = self.dry_run or self.config.dry_run

    @classmethod
    def from_settings(
        cls,
        config: PublishConfig,
        release: ReleaseContext,
        settings: Settings,
        **kwargs: Any,
    ) -> "PublishWorkflow":
        """Create a workflow whose tools follow the runtime settings.

        Args:
            config: Publish configuration
            release: Release metadata
            settings: Runtime settings (binaries, timeouts)
            **kwargs: Remaining PublishWorkflow fields

        Returns:
            Configured PublishWorkflow
        """
        out: Console = kwargs.get("console", console)

        def echo(cmd: str) -> None:
            out.print(f"[dim]$ {escape(cmd)}[/dim]")

        on_command = echo if kwargs.get("verbose") else None
        return cls(
            config=config,
            release=release,
            azure=AzureCLI(settings.az_binary, settings.command_timeout, on_command),
            docker=DockerCLI(settings.docker_binary, settings.command_timeout, on_command),
            **kwargs,
        )

    def run(self) -> PublishResult:
        """Execute the publish.

        Returns:
            PublishResult with every pushed (or would-be pushed) reference

        Raises:
            TagError: If the source image is missing or docker tag fails
            AuthenticationError: If registry login fails
            PushError: If docker push fails
            CancellationError: If the scope is cancelled or times out
        """
        tags = resolve_tags(self.config.tags, self.release)
        registry_host = resolve_registry_host(self.config.registry)
        result = PublishResult(
            registry=registry_host,
            repository=self.config.repository,
            tags=tags,
            dry_run=self.dry_run,
        )

        if not tags:
            self.console.print("[yellow]No tags resolved; nothing to push[/yellow]")

        if not self.dry_run:
            self.check_source_image()
            self.console.print(f"[bold cyan]>[/bold cyan] Logging in to {registry_host}...")
            authenticate(
                self.config.registry,
                self.config.auth,
                azure=self.azure,
                docker=self.docker,
                scope=self.scope,
            )

        for tag in tags:
            if not tag:
                continue
            target = image_reference(registry_host, self.config.image_path, tag)
            self.publish_tag(target)
            result.pushed_images.append(target)

        return result

    def check_source_image(self) -> None:
        """Fail early if the source image is not available locally.

        Raises:
            TagError: If docker cannot inspect the source image
        """
        source = self.config.source_image
        inspected = self.docker.inspect_image(source, scope=self.scope)
        if inspected.returncode == 0:
            return

        output = "\n".join(part for part in (inspected.stdout, inspected.stderr) if part)
        if "no such" in output.lower():
            message = f"Source image not found: {source}"
            fix_hint = f"Build or pull {source} before publishing"
        else:
            message = f"Cannot inspect source image {source}"
            fix_hint = "Check that the container tool is installed and its daemon is running"
        raise TagError(
            message,
            image=source,
            returncode=inspected.returncode,
            output=output,
            fix_hint=fix_hint,
        )

    def publish_tag(self, target: str) -> None:
        """Tag the source image as ``target`` and push it.

        In dry-run mode the intended commands are only reported.

        Args:
            target: Fully qualified target reference
        """
        source = self.config.source_image
        if self.dry_run:
            self.console.print(f"[dim]dry-run:[/dim] would tag {source} as {target}")
            self.console.print(f"[dim]dry-run:[/dim] would push {target}")
            return

        self.docker.tag(source, target, scope=self.scope)
        self.docker.push(target, scope=self.scope)
        self.console.print(f"[green]Pushed:[/green] {target}")
