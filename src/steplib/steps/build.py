from __future__ import annotations

import logging
import stat
from pathlib import Path
from time import perf_counter

from steplib.config import BuildConfig, ExecutionContext, LibraryConfig
from steplib.errors import StepParameterError
from steplib.runner import CommandRunner
from steplib.schemas import StepResult

from .params import require_text

logger = logging.getLogger(__name__)

_WRAPPERS = {"gradle": "gradlew", "maven": "mvnw"}
_BINARIES = {"gradle": "gradle", "maven": "mvn"}


def build_tool_command(build: BuildConfig, workspace: Path) -> list[str]:
    """Return the argv prefix for the configured build tool.

    With ``use_wrapper`` the wrapper script in the workspace is made
    executable first, as a freshly checked-out wrapper often lacks the bit.
    """
    if not build.use_wrapper:
        return [_BINARIES[build.tool]]

    wrapper = workspace / _WRAPPERS[build.tool]
    if not wrapper.is_file():
        raise StepParameterError(f"build wrapper not found: {wrapper}")
    mode = wrapper.stat().st_mode
    wrapper.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return [f"./{wrapper.name}"]


def run_tests(
    *,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
) -> StepResult:
    target = require_text("build.test_target", config.build.test_target)
    return _run_target(
        name="test",
        target=target,
        context=context,
        config=config,
        runner=runner,
    )


def compile_project(
    *,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
) -> StepResult:
    target = require_text("build.compile_target", config.build.compile_target)
    return _run_target(
        name="compile",
        target=target,
        context=context,
        config=config,
        runner=runner,
    )


def _run_target(
    *,
    name: str,
    target: str,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
) -> StepResult:
    started_at = perf_counter()
    logger.info("%s step tool=%s target=%s job=%s", name, config.build.tool, target, context.job_name)
    command = build_tool_command(config.build, context.workspace)
    result = runner.run([*command, target], cwd=context.workspace)
    return StepResult(
        name=name,
        commands=[result],
        duration_seconds=perf_counter() - started_at,
        note=f"{config.build.tool} {target}",
    )
