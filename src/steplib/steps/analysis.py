from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter

from steplib.config import AnalysisConfig, ExecutionContext, LibraryConfig
from steplib.credentials import CredentialStore
from steplib.runner import CommandRunner
from steplib.schemas import StepResult

from .build import build_tool_command

logger = logging.getLogger(__name__)


@contextmanager
def analysis_environment(
    analysis: AnalysisConfig,
    credentials: CredentialStore,
) -> Iterator[dict[str, str]]:
    """Yield the environment the scanner needs, scoped to the ``with`` block."""
    token = credentials.secret_text(analysis.credential_id).secret.get_secret_value()
    env = {
        "SONAR_HOST_URL": analysis.server_url,
        "SONAR_TOKEN": token,
    }
    logger.info("analysis environment open server=%s", analysis.server_url)
    try:
        yield env
    finally:
        env.clear()
        logger.info("analysis environment closed server=%s", analysis.server_url)


def scanner_command(context: ExecutionContext) -> list[str]:
    scanner_home = context.tool_homes.get("sonar_scanner", "").strip()
    if not scanner_home:
        return ["sonar-scanner"]
    return [str(Path(scanner_home) / "bin" / "sonar-scanner")]


def run_static_analysis(
    *,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
) -> StepResult:
    started_at = perf_counter()
    analysis = config.analysis
    project_args = [
        f"-Dsonar.projectName={analysis.project_name}",
        f"-Dsonar.projectKey={analysis.project_key}",
    ]

    logger.info("running sonarqube analysis mode=%s project=%s", analysis.mode, analysis.project_key)
    with analysis_environment(analysis, credentials) as env:
        if analysis.mode == "build_tool":
            goal = "sonar" if config.build.tool == "gradle" else "sonar:sonar"
            command = [*build_tool_command(config.build, context.workspace), goal, *project_args]
        else:
            command = [*scanner_command(context), *project_args, "-Dsonar.sources=."]
        result = runner.run(
            command,
            cwd=context.workspace,
            env=env,
            secrets=[env["SONAR_TOKEN"]],
        )

    return StepResult(
        name="sonar",
        commands=[result],
        duration_seconds=perf_counter() - started_at,
        note=f"{analysis.mode} {analysis.project_key}",
    )
