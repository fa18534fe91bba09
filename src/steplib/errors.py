from __future__ import annotations

from collections.abc import Sequence


class StepError(Exception):
    """Base class for failures raised by pipeline steps."""


class StepParameterError(StepError, ValueError):
    pass


class CredentialError(StepError):
    pass


class ManifestSubstitutionError(StepError):
    pass


class CommandFailedError(StepError):
    def __init__(self, *, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f"command failed exit={returncode}: {' '.join(self.command)}"
        detail = stderr.strip()
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
