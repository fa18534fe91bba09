from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ManifestSubstitutionError

logger = logging.getLogger(__name__)

IMAGE_LINE_PATTERN = re.compile(r"^(?P<prefix>\s*(?:-\s+)?)image:.*$")


@dataclass(slots=True, frozen=True)
class SubstitutionResult:
    path: Path
    image_ref: str
    replaced_lines: int

    @property
    def changed(self) -> bool:
        return self.replaced_lines > 0


def image_reference(image_name: str, build_number: int) -> str:
    return f"{image_name}:{build_number}"


def substitute_image(text: str, image_ref: str) -> tuple[str, int]:
    replaced = 0
    lines: list[str] = []
    for raw_line in text.splitlines(keepends=True):
        body = raw_line.rstrip("\r\n")
        ending = raw_line[len(body) :]
        match = IMAGE_LINE_PATTERN.match(body)
        if match is None:
            lines.append(raw_line)
            continue
        lines.append(f"{match.group('prefix')}image: {image_ref}{ending}")
        replaced += 1
    return "".join(lines), replaced


def rewrite_manifest_image(path: Path, image_ref: str, *, strict: bool = True) -> SubstitutionResult:
    if not path.is_file():
        raise ManifestSubstitutionError(f"manifest not found: {path}")

    with path.open("r", encoding="utf-8", newline="") as handle:
        original = handle.read()

    updated, replaced = substitute_image(original, image_ref)
    if replaced == 0:
        if strict:
            raise ManifestSubstitutionError(f"no image line found in manifest: {path}")
        logger.warning("manifest unchanged path=%s reason=no_image_line", path)
        return SubstitutionResult(path=path, image_ref=image_ref, replaced_lines=0)

    if updated != original:
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(updated)
    logger.info("manifest rewritten path=%s image=%s lines=%d", path, image_ref, replaced)
    return SubstitutionResult(path=path, image_ref=image_ref, replaced_lines=replaced)
