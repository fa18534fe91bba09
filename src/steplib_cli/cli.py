from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer

from steplib import (
    CommandFailedError,
    CommandRunner,
    EnvCredentialStore,
    ExecutionContext,
    LibraryConfig,
    StepError,
    StepResult,
    load_config,
)
from steplib.steps import (
    build_image,
    checkout_repo,
    compile_project,
    deploy_to_cluster,
    push_image,
    render_step_table,
    render_summary_line,
    run_static_analysis,
    run_tests,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Shared pipeline steps CLI")
debug_app = typer.Typer(help="Debug commands")
app.add_typer(debug_app, name="debug")

_CONFIG_HELP = "Library config file (YAML or JSON). Built-in defaults when omitted."
_BUILD_NUMBER_HELP = "Build number. Defaults to $BUILD_NUMBER."
_JOB_NAME_HELP = "Job name. Defaults to $JOB_NAME."
_WORKSPACE_HELP = "Workspace directory. Defaults to $WORKSPACE or the current directory."


@app.command()
def hello(name: str = typer.Option("world", "--name", "-n", help="Name to greet.")) -> None:
    """Simple smoke command."""
    logging.info("hello command invoked")
    typer.echo(f"hello, {name}")


@app.command("checkout")
def checkout_command(
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Check out the configured branch of the project repository."""
    context, config = _prepare(config_path, build_number, job_name, workspace, require_build_number=False)
    _execute(
        lambda: checkout_repo(
            context=context,
            config=config,
            runner=CommandRunner(),
            credentials=EnvCredentialStore(),
        )
    )


@app.command("test")
def test_command(
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Run the build tool's test target."""
    context, config = _prepare(config_path, build_number, job_name, workspace, require_build_number=False)
    _execute(lambda: run_tests(context=context, config=config, runner=CommandRunner()))


@app.command("compile")
def compile_command(
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Run the build tool's compile target."""
    context, config = _prepare(config_path, build_number, job_name, workspace, require_build_number=False)
    _execute(lambda: compile_project(context=context, config=config, runner=CommandRunner()))


@app.command("sonar")
def sonar_command(
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Run SonarQube analysis inside the analysis server environment."""
    context, config = _prepare(config_path, build_number, job_name, workspace, require_build_number=False)
    _execute(
        lambda: run_static_analysis(
            context=context,
            config=config,
            runner=CommandRunner(),
            credentials=EnvCredentialStore(),
        )
    )


@app.command("build-image")
def build_image_command(
    credential_id: str = typer.Option(..., "--credential-id", help="Registry username/password credential id."),
    image_name: str = typer.Option(..., "--image-name", help="Image repository name, e.g. acme/app."),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Log in to the registry and build <image-name>:<build-number>."""
    context, config = _prepare(config_path, build_number, job_name, workspace)
    _execute(
        lambda: build_image(
            credential_id=credential_id,
            image_name=image_name,
            context=context,
            config=config,
            runner=CommandRunner(),
            credentials=EnvCredentialStore(),
        )
    )


@app.command("push-image")
def push_image_command(
    credential_id: str = typer.Option(..., "--credential-id", help="Registry username/password credential id."),
    image_name: str = typer.Option(..., "--image-name", help="Image repository name, e.g. acme/app."),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Log in to the registry and push <image-name>:<build-number>."""
    context, config = _prepare(config_path, build_number, job_name, workspace)
    _execute(
        lambda: push_image(
            credential_id=credential_id,
            image_name=image_name,
            context=context,
            config=config,
            runner=CommandRunner(),
            credentials=EnvCredentialStore(),
        )
    )


@app.command("deploy")
def deploy_command(
    credential_id: str = typer.Option(..., "--credential-id", help="Cluster token credential id."),
    cluster_url: str = typer.Option(..., "--cluster-url", help="Cluster API server URL."),
    project: str = typer.Option(..., "--project", help="Target namespace / project."),
    image_name: str = typer.Option(..., "--image-name", help="Image repository name, e.g. acme/app."),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP, exists=True, dir_okay=False),
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Point the deployment manifest at the new image and apply all manifests."""
    context, config = _prepare(config_path, build_number, job_name, workspace)
    _execute(
        lambda: deploy_to_cluster(
            credential_id=credential_id,
            cluster_url=cluster_url,
            project=project,
            image_name=image_name,
            context=context,
            config=config,
            runner=CommandRunner(),
            credentials=EnvCredentialStore(),
        )
    )


@debug_app.command("context")
def debug_context(
    build_number: int | None = typer.Option(None, "--build-number", help=_BUILD_NUMBER_HELP, min=1),
    job_name: str | None = typer.Option(None, "--job-name", help=_JOB_NAME_HELP),
    workspace: Path | None = typer.Option(None, "--workspace", help=_WORKSPACE_HELP, file_okay=False),
) -> None:
    """Print the resolved execution context."""
    context, _ = _prepare(None, build_number, job_name, workspace, require_build_number=False)
    typer.echo(f"build_number={context.build_number or '-'}")
    typer.echo(f"job_name={context.job_name or '-'}")
    typer.echo(f"workspace={context.workspace}")
    for tool, home in sorted(context.tool_homes.items()):
        typer.echo(f"tool_home.{tool}={home}")


def _prepare(
    config_path: Path | None,
    build_number: int | None,
    job_name: str | None,
    workspace: Path | None,
    *,
    require_build_number: bool = True,
) -> tuple[ExecutionContext, LibraryConfig]:
    try:
        config = load_config(config_path)
        context = ExecutionContext.from_env(
            build_number=build_number,
            job_name=job_name,
            workspace=workspace,
            require_build_number=require_build_number,
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    return context, config


def _execute(step: Callable[[], StepResult]) -> None:
    try:
        result = step()
    except CommandFailedError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=exc.returncode if exc.returncode > 0 else 1) from exc
    except StepError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(render_step_table([result]))
    typer.echo(render_summary_line(result))


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
