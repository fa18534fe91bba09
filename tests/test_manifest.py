from __future__ import annotations

import pytest

from steplib.errors import ManifestSubstitutionError
from steplib.manifest import image_reference, rewrite_manifest_image, substitute_image

DEPLOYMENT = (
    "apiVersion: apps/v1\n"
    "kind: Deployment\n"
    "metadata:\n"
    "  name: app\n"
    "spec:\n"
    "  template:\n"
    "    spec:\n"
    "      containers:\n"
    "        - name: app\n"
    "          image: acme/app:latest\n"
    "          ports:\n"
    "            - containerPort: 8080\n"
)


def test_image_reference_format() -> None:
    assert image_reference("acme/app", 42) == "acme/app:42"


def test_substitute_image_rewrites_only_image_line() -> None:
    updated, replaced = substitute_image(DEPLOYMENT, "acme/app:42")

    assert replaced == 1
    before = DEPLOYMENT.splitlines()
    after = updated.splitlines()
    assert len(before) == len(after)
    changed = [index for index, (old, new) in enumerate(zip(before, after)) if old != new]
    assert changed == [9]
    assert after[9].strip() == "image: acme/app:42"
    assert after[9].startswith("          image:")


def test_substitute_image_keeps_list_marker_and_crlf() -> None:
    text = "containers:\r\n- image: old\r\n  name: x\r\n"

    updated, replaced = substitute_image(text, "acme/app:7")

    assert replaced == 1
    assert updated == "containers:\r\n- image: acme/app:7\r\n  name: x\r\n"


def test_rewrite_manifest_image_updates_file(tmp_path) -> None:
    manifest = tmp_path / "deployment.yaml"
    manifest.write_text(DEPLOYMENT, encoding="utf-8")

    result = rewrite_manifest_image(manifest, "acme/app:42")

    assert result.changed
    assert "image: acme/app:42" in manifest.read_text(encoding="utf-8")


def test_rewrite_manifest_without_image_line_fails_and_keeps_bytes(tmp_path) -> None:
    manifest = tmp_path / "service.yaml"
    original = b"apiVersion: v1\nkind: Service\r\nmetadata:\n  name: app\n"
    manifest.write_bytes(original)

    with pytest.raises(ManifestSubstitutionError, match="no image line"):
        rewrite_manifest_image(manifest, "acme/app:42")

    assert manifest.read_bytes() == original


def test_rewrite_manifest_non_strict_is_a_no_op(tmp_path) -> None:
    manifest = tmp_path / "service.yaml"
    original = b"apiVersion: v1\nkind: Service\n"
    manifest.write_bytes(original)

    result = rewrite_manifest_image(manifest, "acme/app:42", strict=False)

    assert not result.changed
    assert manifest.read_bytes() == original


def test_rewrite_manifest_missing_file(tmp_path) -> None:
    with pytest.raises(ManifestSubstitutionError, match="not found"):
        rewrite_manifest_image(tmp_path / "missing.yaml", "acme/app:1")
