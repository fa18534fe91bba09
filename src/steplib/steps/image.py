from __future__ import annotations

import logging
from time import perf_counter

from steplib.config import ExecutionContext, LibraryConfig, RegistryConfig
from steplib.credentials import CredentialStore
from steplib.manifest import image_reference
from steplib.runner import CommandRunner
from steplib.schemas import CommandResult, StepResult

from .params import require_build_number, require_text

logger = logging.getLogger(__name__)


def registry_login(
    *,
    registry: RegistryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
    credential_id: str,
    context: ExecutionContext,
) -> CommandResult:
    credential = credentials.username_password(credential_id)
    password = credential.password.get_secret_value()
    command = [registry.docker_binary, "login"]
    if registry.server:
        command.append(registry.server)
    command.extend(["--username", credential.username, "--password-stdin"])
    return runner.run(
        command,
        cwd=context.workspace,
        input_text=password,
        secrets=[password],
        capture_output=True,
    )


def build_image(
    *,
    credential_id: str,
    image_name: str,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
) -> StepResult:
    credential_id = require_text("credential_id", credential_id)
    image_name = require_text("image_name", image_name)
    started_at = perf_counter()
    tag = image_reference(image_name, require_build_number(context))
    logger.info("building docker image tag=%s", tag)

    login = registry_login(
        registry=config.registry,
        runner=runner,
        credentials=credentials,
        credential_id=credential_id,
        context=context,
    )
    build = runner.run(
        [config.registry.docker_binary, "build", "-t", tag, "."],
        cwd=context.workspace,
    )
    return StepResult(
        name="build-image",
        commands=[login, build],
        duration_seconds=perf_counter() - started_at,
        note=tag,
    )


def push_image(
    *,
    credential_id: str,
    image_name: str,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
) -> StepResult:
    credential_id = require_text("credential_id", credential_id)
    image_name = require_text("image_name", image_name)
    started_at = perf_counter()
    tag = image_reference(image_name, require_build_number(context))
    logger.info("pushing docker image tag=%s", tag)

    login = registry_login(
        registry=config.registry,
        runner=runner,
        credentials=credentials,
        credential_id=credential_id,
        context=context,
    )
    push = runner.run(
        [config.registry.docker_binary, "push", tag],
        cwd=context.workspace,
    )
    return StepResult(
        name="push-image",
        commands=[login, push],
        duration_seconds=perf_counter() - started_at,
        note=tag,
    )
