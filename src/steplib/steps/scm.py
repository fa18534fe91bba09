from __future__ import annotations

import logging
from time import perf_counter

from steplib.config import ExecutionContext, LibraryConfig
from steplib.credentials import CredentialStore
from steplib.runner import CommandRunner
from steplib.schemas import CommandResult, StepResult

logger = logging.getLogger(__name__)

# git runs credential helpers through a shell; the values stay in the environment.
_CREDENTIAL_HELPER = '!f() { echo "username=${GIT_USERNAME}"; echo "password=${GIT_PASSWORD}"; }; f'


def checkout_repo(
    *,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
) -> StepResult:
    started_at = perf_counter()
    checkout = config.checkout
    logger.info("checking git repo url=%s branch=%s", checkout.url, checkout.branch)

    credential = credentials.username_password(checkout.credential_id)
    password = credential.password.get_secret_value()
    target_dir = (context.workspace / checkout.directory).resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    commands: list[CommandResult] = []
    if not (target_dir / ".git").exists():
        commands.append(runner.run(["git", "init", "--quiet"], cwd=target_dir))

    remote_ref = f"refs/remotes/origin/{checkout.branch}"
    commands.append(
        runner.run(
            [
                "git",
                "-c",
                "credential.helper=",
                "-c",
                f"credential.helper={_CREDENTIAL_HELPER}",
                "fetch",
                "--no-tags",
                "--force",
                checkout.url,
                f"+refs/heads/{checkout.branch}:{remote_ref}",
            ],
            cwd=target_dir,
            env={
                "GIT_USERNAME": credential.username,
                "GIT_PASSWORD": password,
                "GIT_TERMINAL_PROMPT": "0",
            },
            secrets=[password],
        )
    )
    commands.append(
        runner.run(
            ["git", "checkout", "--force", "-B", checkout.branch, remote_ref],
            cwd=target_dir,
        )
    )

    return StepResult(
        name="checkout",
        commands=commands,
        duration_seconds=perf_counter() - started_at,
        note=f"{checkout.url}@{checkout.branch}",
    )
