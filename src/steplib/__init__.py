"""Shared pipeline step library."""

from .config import ExecutionContext, LibraryConfig, load_config
from .credentials import EnvCredentialStore, InMemoryCredentialStore
from .errors import (
    CommandFailedError,
    CredentialError,
    ManifestSubstitutionError,
    StepError,
    StepParameterError,
)
from .runner import CommandRunner
from .schemas import CommandResult, SecretText, StepResult, UsernamePassword

__all__ = [
    "CommandFailedError",
    "CommandResult",
    "CommandRunner",
    "CredentialError",
    "EnvCredentialStore",
    "ExecutionContext",
    "InMemoryCredentialStore",
    "LibraryConfig",
    "ManifestSubstitutionError",
    "SecretText",
    "StepError",
    "StepParameterError",
    "StepResult",
    "UsernamePassword",
    "load_config",
]
