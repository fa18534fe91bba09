from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter
from typing import Any

import yaml

from steplib.config import ExecutionContext, LibraryConfig
from steplib.credentials import CredentialStore
from steplib.manifest import image_reference, rewrite_manifest_image
from steplib.runner import CommandRunner
from steplib.schemas import StepResult

from .params import require_build_number, require_text

logger = logging.getLogger(__name__)

_CONTEXT_NAME = "steplib"


def build_kubeconfig(
    *,
    cluster_url: str,
    token: str,
    namespace: str,
    insecure_skip_tls_verify: bool = False,
) -> dict[str, Any]:
    cluster: dict[str, Any] = {"server": cluster_url}
    if insecure_skip_tls_verify:
        cluster["insecure-skip-tls-verify"] = True
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{"name": _CONTEXT_NAME, "cluster": cluster}],
        "users": [{"name": _CONTEXT_NAME, "user": {"token": token}}],
        "contexts": [
            {
                "name": _CONTEXT_NAME,
                "context": {
                    "cluster": _CONTEXT_NAME,
                    "user": _CONTEXT_NAME,
                    "namespace": namespace,
                },
            }
        ],
        "current-context": _CONTEXT_NAME,
    }


@contextmanager
def temporary_kubeconfig(config: dict[str, Any]) -> Iterator[Path]:
    """Write a kubeconfig readable only by the current user, removed on exit."""
    fd, raw_path = tempfile.mkstemp(prefix="steplib-kubeconfig-", suffix=".yaml")
    path = Path(raw_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            yaml.safe_dump(config, handle, sort_keys=False)
        path.chmod(0o600)
        yield path
    finally:
        path.unlink(missing_ok=True)


def deploy_to_cluster(
    *,
    credential_id: str,
    cluster_url: str,
    project: str,
    image_name: str,
    context: ExecutionContext,
    config: LibraryConfig,
    runner: CommandRunner,
    credentials: CredentialStore,
) -> StepResult:
    credential_id = require_text("credential_id", credential_id)
    cluster_url = require_text("cluster_url", cluster_url)
    project = require_text("project", project)
    image_name = require_text("image_name", image_name)
    image_ref = image_reference(image_name, require_build_number(context))
    started_at = perf_counter()
    deploy = config.deploy

    token = credentials.secret_text(credential_id).secret.get_secret_value()
    manifest_dir = (context.workspace / deploy.manifest_dir).resolve()

    substitution = rewrite_manifest_image(
        manifest_dir / deploy.manifest_file,
        image_ref,
        strict=deploy.strict_manifest,
    )

    kubeconfig = build_kubeconfig(
        cluster_url=cluster_url,
        token=token,
        namespace=project,
        insecure_skip_tls_verify=deploy.insecure_skip_tls_verify,
    )
    logger.info("deploying image=%s cluster=%s namespace=%s", image_ref, cluster_url, project)
    with temporary_kubeconfig(kubeconfig) as kubeconfig_path:
        result = runner.run(
            [
                deploy.kubectl_binary,
                "apply",
                "-f",
                str(manifest_dir),
                "--kubeconfig",
                str(kubeconfig_path),
                "--namespace",
                project,
            ],
            cwd=context.workspace,
            secrets=[token],
        )

    note = image_ref if substitution.changed else f"{image_ref} (manifest unchanged)"
    return StepResult(
        name="deploy",
        commands=[result],
        duration_seconds=perf_counter() - started_at,
        note=note,
    )
