from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from time import perf_counter

from .errors import CommandFailedError
from .schemas import CommandResult

logger = logging.getLogger(__name__)

MASK = "****"
_NOT_FOUND_EXIT = 127
_TIMEOUT_EXIT = 124


def mask_secrets(text: str, secrets: Iterable[str]) -> str:
    masked = text
    # Longest first so a secret containing another secret is fully hidden.
    for secret in sorted({value for value in secrets if value}, key=len, reverse=True):
        masked = masked.replace(secret, MASK)
    return masked


class CommandRunner:
    """Runs one external command per call as an argument array, never via a shell."""

    def __init__(
        self,
        *,
        base_env: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
        secrets: Sequence[str] = (),
        capture_output: bool = False,
    ) -> CommandResult:
        if not args:
            raise ValueError("args must not be empty")

        command = [str(arg) for arg in args]
        display_args = [mask_secrets(arg, secrets) for arg in command]
        merged_env = {**self.base_env, **(env or {})}

        logger.info("run command=%s cwd=%s", " ".join(display_args), cwd or ".")
        started_at = perf_counter()
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                env=merged_env,
                input=input_text,
                text=True,
                capture_output=capture_output,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CommandFailedError(
                args=display_args,
                returncode=_NOT_FOUND_EXIT,
                stderr=f"executable not found: {command[0]}",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandFailedError(
                args=display_args,
                returncode=_TIMEOUT_EXIT,
                stderr=f"timed out after {self.timeout_seconds}s",
            ) from exc

        duration_seconds = perf_counter() - started_at
        stdout = mask_secrets(completed.stdout or "", secrets)
        stderr = mask_secrets(completed.stderr or "", secrets)

        if completed.returncode != 0:
            logger.error(
                "command failed exit=%d duration=%.3fs command=%s",
                completed.returncode,
                duration_seconds,
                " ".join(display_args),
            )
            raise CommandFailedError(
                args=display_args,
                returncode=completed.returncode,
                stderr=stderr,
            )

        logger.info("command ok duration=%.3fs command=%s", duration_seconds, display_args[0])
        return CommandResult(
            args=display_args,
            returncode=completed.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration_seconds,
        )
