from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

_DEFAULT_TARGETS = {
    "gradle": {"test": "test", "compile": "build"},
    "maven": {"test": "test", "compile": "compile"},
}


class CheckoutConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = "https://github.com/Osamaomera/MultiCloudDevOpsProject.git"
    branch: str = "main"
    credential_id: str = "GitHub"
    directory: str = "."

    @field_validator("url", "credential_id")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("checkout fields must not be empty")
        return normalized

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, value: str) -> str:
        normalized = value.strip()
        # "*/main" is the Jenkins branch-specifier form of "main".
        if normalized.startswith("*/"):
            normalized = normalized[2:].strip()
        if not normalized:
            raise ValueError("checkout.branch must not be empty")
        return normalized


class BuildConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tool: Literal["gradle", "maven"] = "gradle"
    use_wrapper: bool = True
    test_target: str | None = None
    compile_target: str | None = None

    @model_validator(mode="after")
    def fill_default_targets(self) -> BuildConfig:
        defaults = _DEFAULT_TARGETS[self.tool]
        self.test_target = (self.test_target or "").strip() or defaults["test"]
        self.compile_target = (self.compile_target or "").strip() or defaults["compile"]
        return self


class AnalysisConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["build_tool", "scanner"] = "build_tool"
    server_url: str = "http://localhost:9000"
    credential_id: str = "SonarQube"
    project_name: str = "MultiCloudDevOpsProject"
    project_key: str = "MultiCloudDevOpsProject"

    @field_validator("server_url", "credential_id", "project_name", "project_key")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("analysis fields must not be empty")
        return normalized


class RegistryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    server: str | None = None
    docker_binary: str = "docker"


class DeployConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    manifest_file: str = "deployment.yaml"
    manifest_dir: str = "."
    kubectl_binary: str = "kubectl"
    strict_manifest: bool = True
    insecure_skip_tls_verify: bool = False

    @field_validator("manifest_file", "kubectl_binary")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("deploy.manifest_file and deploy.kubectl_binary must not be empty")
        return normalized


class LibraryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    checkout: CheckoutConfig = Field(default_factory=CheckoutConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)


class ExecutionContext(BaseModel):
    """Values the calling pipeline supplies for one run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    build_number: int | None = Field(default=None, ge=1)
    job_name: str = ""
    workspace: Path = Field(default_factory=Path.cwd)
    tool_homes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        build_number: int | None = None,
        job_name: str | None = None,
        workspace: Path | None = None,
        require_build_number: bool = True,
    ) -> ExecutionContext:
        env = os.environ if environ is None else environ

        raw_number = env.get("BUILD_NUMBER", "").strip()
        if build_number is None and not raw_number and require_build_number:
            raise ValueError("BUILD_NUMBER is not set.")
        if build_number is None and raw_number:
            try:
                build_number = int(raw_number)
            except ValueError as exc:
                raise ValueError(f"BUILD_NUMBER must be an integer: {raw_number}") from exc

        if workspace is None:
            raw_workspace = env.get("WORKSPACE", "").strip()
            workspace = Path(raw_workspace) if raw_workspace else Path.cwd()

        tool_homes: dict[str, str] = {}
        scanner_home = env.get("SONAR_SCANNER_HOME", "").strip()
        if scanner_home:
            tool_homes["sonar_scanner"] = scanner_home

        try:
            return cls(
                build_number=build_number,
                job_name=job_name if job_name is not None else env.get("JOB_NAME", ""),
                workspace=workspace,
                tool_homes=tool_homes,
            )
        except ValidationError as exc:
            raise ValueError(f"Invalid execution context: {exc}") from exc


def load_config(path: str | Path | None = None) -> LibraryConfig:
    if path is None:
        return LibraryConfig()
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw) if raw.strip() else {}
    try:
        return LibraryConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _parse_yaml(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed


def _parse_yaml(raw: str) -> dict[str, Any]:
    import yaml

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
