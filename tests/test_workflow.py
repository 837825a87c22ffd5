"""Unit tests for acr_publish.workflow module.

Tests for PublishWorkflow:
- dry-run merging and side-effect freedom
- authentication ordering and failure handling
- per-tag tag/push sequencing and fail-fast behavior
- output map shape
"""

import io
import subprocess
from unittest.mock import MagicMock, call

import pytest
from rich.console import Console

from acr_publish.config.models import AdminAuth, PublishConfig, ReleaseContext
from acr_publish.config.settings import Settings
from acr_publish.exceptions import (
    AuthenticationError,
    CancellationError,
    PushError,
    TagError,
)
from acr_publish.workflow import PublishResult, PublishWorkflow, image_reference


def make_config(**overrides: object) -> PublishConfig:
    values: dict[str, object] = {
        "registry": "myregistry",
        "image": "myapp",
        "source_image": "myapp:latest",
    }
    values.update(overrides)
    return PublishConfig(**values)  # type: ignore[arg-type]


@pytest.fixture
def make_workflow(azure: MagicMock, docker: MagicMock, test_console: Console):
    def factory(config: PublishConfig, release: ReleaseContext, **kwargs: object) -> PublishWorkflow:
        return PublishWorkflow(
            config=config,
            release=release,
            azure=azure,
            docker=docker,
            console=test_console,
            **kwargs,  # type: ignore[arg-type]
        )

    return factory


def test_image_reference() -> None:
    assert image_reference("r.azurecr.io", "team/app", "1.0") == "r.azurecr.io/team/app:1.0"


class TestDryRun:
    """Dry-run runs no external commands but reports every target."""

    def test_two_tags_no_external_calls(
        self,
        make_workflow,
        azure: MagicMock,
        docker: MagicMock,
        output: io.StringIO,
    ) -> None:
        config = make_config(tags=("1.0.0", "latest"))
        workflow = make_workflow(config, ReleaseContext(version="1.0.0"), dry_run=True)

        result = workflow.run()

        assert result.pushed_images == [
            "myregistry.azurecr.io/myapp:1.0.0",
            "myregistry.azurecr.io/myapp:latest",
        ]
        assert result.dry_run is True
        assert azure.mock_calls == []
        assert docker.mock_calls == []
        text = output.getvalue()
        assert "would tag myapp:latest as myregistry.azurecr.io/myapp:1.0.0" in text
        assert "would push myregistry.azurecr.io/myapp:latest" in text

    def test_config_flag_enables_dry_run(self, make_workflow, docker: MagicMock) -> None:
        workflow = make_workflow(make_config(dry_run=True), ReleaseContext(version="1.0.0"))

        assert workflow.dry_run is True
        workflow.run()
        docker.tag.assert_not_called()

    def test_request_flag_enables_dry_run(self, make_workflow, docker: MagicMock) -> None:
        workflow = make_workflow(make_config(), ReleaseContext(version="1.0.0"), dry_run=True)
        workflow.run()
        docker.push.assert_not_called()


class TestPublish:
    """Tests for the real (non dry-run) publish path."""

    def test_full_sequence(
        self,
        make_workflow,
        azure: MagicMock,
        docker: MagicMock,
        release: ReleaseContext,
    ) -> None:
        """Source check, login, then tag+push per tag in configured order."""
        config = make_config(repository="team", tags=("{{version}}", "latest"))
        workflow = make_workflow(config, release)
        scope = workflow.scope

        result = workflow.run()

        first = "myregistry.azurecr.io/team/myapp:1.0.0"
        second = "myregistry.azurecr.io/team/myapp:latest"
        assert docker.mock_calls == [
            call.inspect_image("myapp:latest", scope=scope),
            call.tag("myapp:latest", first, scope=scope),
            call.push(first, scope=scope),
            call.tag("myapp:latest", second, scope=scope),
            call.push(second, scope=scope),
        ]
        azure.acr_login.assert_called_once_with("myregistry", scope=scope)
        assert result.pushed_images == [first, second]
        assert result.tags == ["1.0.0", "latest"]

    def test_outputs(self, make_workflow, release: ReleaseContext) -> None:
        config = make_config(registry="myregistry.azurecr.io", tags=("latest",))
        outputs = make_workflow(config, release).run().to_outputs()

        assert outputs == {
            "registry": "myregistry.azurecr.io",
            "repository": "",
            "tags": ["latest"],
            "pushed_images": ["myregistry.azurecr.io/myapp:latest"],
        }

    def test_admin_auth_uses_docker_login(
        self, make_workflow, azure: MagicMock, docker: MagicMock, release: ReleaseContext
    ) -> None:
        config = make_config(auth=AdminAuth(username="admin", password="pw"))
        make_workflow(config, release).run()

        docker.login.assert_called_once()
        assert docker.login.call_args.args[:3] == ("myregistry.azurecr.io", "admin", "pw")
        azure.acr_login.assert_not_called()

    def test_empty_tags_is_success(
        self, make_workflow, docker: MagicMock, output: io.StringIO
    ) -> None:
        config = make_config(tags=("{{if .IsPrerelease}}beta{{end}}",))
        result = make_workflow(config, ReleaseContext(version="1.0.0")).run()

        assert result.tags == []
        assert result.pushed_images == []
        docker.tag.assert_not_called()
        assert "No tags resolved" in output.getvalue()

    def test_pushed_message(self, make_workflow, release: ReleaseContext, output: io.StringIO) -> None:
        make_workflow(make_config(tags=("latest",)), release).run()
        assert "Pushed: myregistry.azurecr.io/myapp:latest" in output.getvalue()


class TestFailures:
    """Fail-fast behavior."""

    def test_missing_source_image(
        self, make_workflow, azure: MagicMock, docker: MagicMock, release: ReleaseContext
    ) -> None:
        """A missing source image stops the run before any login."""
        docker.inspect_image.return_value = subprocess.CompletedProcess(
            [], 1, stdout="[]", stderr="Error: No such image: myapp:latest"
        )

        with pytest.raises(TagError) as exc_info:
            make_workflow(make_config(), release).run()

        err = exc_info.value
        assert err.image == "myapp:latest"
        assert err.message == "Source image not found: myapp:latest"
        assert err.returncode == 1
        assert "No such image" in str(err)
        azure.acr_login.assert_not_called()
        docker.tag.assert_not_called()

    def test_daemon_down_keeps_tool_output(
        self, make_workflow, azure: MagicMock, docker: MagicMock, release: ReleaseContext
    ) -> None:
        """An unreachable daemon is reported with docker's own diagnostics."""
        daemon_down = (
            "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. "
            "Is the docker daemon running?"
        )
        docker.inspect_image.return_value = subprocess.CompletedProcess(
            [], 1, stdout="", stderr=daemon_down
        )

        with pytest.raises(TagError) as exc_info:
            make_workflow(make_config(), release).run()

        err = exc_info.value
        assert err.message == "Cannot inspect source image myapp:latest"
        assert err.returncode == 1
        assert err.output == daemon_down
        assert "Cannot connect to the Docker daemon" in str(err)
        azure.acr_login.assert_not_called()

    def test_missing_container_tool(
        self, make_workflow, docker: MagicMock, release: ReleaseContext
    ) -> None:
        docker.inspect_image.return_value = subprocess.CompletedProcess(
            [], 127, stdout="", stderr="docker: command not found"
        )

        with pytest.raises(TagError) as exc_info:
            make_workflow(make_config(), release).run()

        assert exc_info.value.returncode == 127
        assert "command not found" in str(exc_info.value)

    def test_auth_failure_aborts(
        self, make_workflow, azure: MagicMock, docker: MagicMock, release: ReleaseContext
    ) -> None:
        azure.acr_login.side_effect = AuthenticationError("az acr login failed", returncode=1)

        with pytest.raises(AuthenticationError):
            make_workflow(make_config(), release).run()

        docker.tag.assert_not_called()
        docker.push.assert_not_called()

    def test_push_failure_on_second_of_three(
        self, make_workflow, docker: MagicMock, release: ReleaseContext
    ) -> None:
        """The third tag is never attempted; the first push stays done."""
        config = make_config(tags=("a", "b", "c"))
        target_b = "myregistry.azurecr.io/myapp:b"

        def push(target: str, scope: object = None) -> None:
            if target == target_b:
                raise PushError(f"Failed to push {target}", image=target, returncode=1)

        docker.push.side_effect = push

        with pytest.raises(PushError) as exc_info:
            make_workflow(config, release).run()

        assert exc_info.value.image == target_b
        pushed = [c.args[0] for c in docker.push.call_args_list]
        tagged = [c.args[1] for c in docker.tag.call_args_list]
        assert pushed == ["myregistry.azurecr.io/myapp:a", target_b]
        assert tagged == ["myregistry.azurecr.io/myapp:a", target_b]

    def test_tag_failure_skips_push(
        self, make_workflow, docker: MagicMock, release: ReleaseContext
    ) -> None:
        docker.tag.side_effect = TagError("Failed to tag", image="x", returncode=1)

        with pytest.raises(TagError):
            make_workflow(make_config(tags=("a", "b")), release).run()

        assert docker.tag.call_count == 1
        docker.push.assert_not_called()

    def test_cancellation_propagates(
        self, make_workflow, docker: MagicMock, release: ReleaseContext
    ) -> None:
        docker.push.side_effect = CancellationError("Operation cancelled")

        with pytest.raises(CancellationError):
            make_workflow(make_config(tags=("a", "b")), release).run()

        assert docker.push.call_count == 1


class TestFromSettings:
    """Tests for PublishWorkflow.from_settings."""

    def test_tools_follow_settings(self, release: ReleaseContext) -> None:
        settings = Settings(az_binary="/usr/bin/az", docker_binary="podman", command_timeout=42)
        workflow = PublishWorkflow.from_settings(make_config(), release, settings, dry_run=True)

        assert workflow.azure.binary == "/usr/bin/az"
        assert workflow.docker.binary == "podman"
        assert workflow.docker.timeout == 42
        assert workflow.docker.on_command is None

    def test_verbose_echoes_commands(self, release: ReleaseContext) -> None:
        buf = io.StringIO()
        out = Console(file=buf, width=200, color_system=None)
        workflow = PublishWorkflow.from_settings(
            make_config(), release, Settings(), console=out, verbose=True
        )

        assert workflow.docker.on_command is not None
        workflow.docker.on_command("docker push x")
        assert "$ docker push x" in buf.getvalue()


def test_publish_result_outputs_are_copies() -> None:
    result = PublishResult(registry="r", repository="", tags=["a"], pushed_images=["r/x:a"])
    outputs = result.to_outputs()
    outputs["tags"].append("b")
    assert result.tags == ["a"]
