from __future__ import annotations

from collections.abc import Sequence

from steplib.schemas import StepResult

_HEADERS = ("step", "commands", "seconds", "note")
_NOTE_LIMIT = 72


def render_step_table(results: list[StepResult]) -> str:
    if not results:
        return "no steps ran"

    rows = [_HEADERS] + [
        (
            result.name,
            str(result.command_count),
            f"{result.duration_seconds:.3f}",
            _shorten(result.note or "-"),
        )
        for result in results
    ]
    widths = [max(len(cell) for cell in column) for column in zip(*rows)]
    lines = [_format_row(rows[0], widths), "-+-".join("-" * width for width in widths)]
    lines.extend(_format_row(row, widths) for row in rows[1:])
    return "\n".join(lines)


def render_summary_line(result: StepResult) -> str:
    return (
        "summary "
        f"step={result.name} "
        f"commands={result.command_count} "
        f"duration={result.duration_seconds:.3f}s"
    )


def _format_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    return " | ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()


def _shorten(text: str) -> str:
    if len(text) <= _NOTE_LIMIT:
        return text
    return text[: _NOTE_LIMIT - 3] + "..."
