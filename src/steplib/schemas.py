from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class DTOBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class UsernamePassword(DTOBase):
    username: str
    password: SecretStr

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("username must not be empty")
        return normalized


class SecretText(DTOBase):
    secret: SecretStr


class CommandResult(DTOBase):
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = Field(default=0.0, ge=0.0)


class StepResult(DTOBase):
    name: str
    commands: list[CommandResult] = Field(default_factory=list)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    note: str = ""

    @property
    def command_count(self) -> int:
        return len(self.commands)
