from __future__ import annotations

import logging
import sys

import pytest

from steplib.errors import CommandFailedError
from steplib.runner import MASK, CommandRunner, mask_secrets


def test_runner_captures_output_and_env(tmp_path) -> None:
    runner = CommandRunner()

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.environ['STEP_VALUE'])"],
        cwd=tmp_path,
        env={"STEP_VALUE": "from-step"},
        capture_output=True,
    )

    assert result.returncode == 0
    assert result.stdout.strip() == "from-step"
    assert result.args[0] == sys.executable


def test_runner_passes_input_on_stdin() -> None:
    runner = CommandRunner()

    result = runner.run(
        [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
        input_text="hunter2",
        secrets=["HUNTER2"],
        capture_output=True,
    )

    assert result.stdout.strip() == MASK


def test_runner_raises_on_nonzero_exit() -> None:
    runner = CommandRunner()

    with pytest.raises(CommandFailedError) as exc_info:
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            capture_output=True,
        )

    assert exc_info.value.returncode == 3
    assert "boom" in exc_info.value.stderr


def test_runner_missing_executable_maps_to_127() -> None:
    runner = CommandRunner()

    with pytest.raises(CommandFailedError) as exc_info:
        runner.run(["definitely-not-a-real-binary-xyz"])

    assert exc_info.value.returncode == 127


def test_runner_masks_secrets_in_logs(caplog) -> None:
    caplog.set_level(logging.INFO, logger="steplib.runner")
    runner = CommandRunner()

    result = runner.run(
        [sys.executable, "-c", "pass", "--token", "tok-abc"],
        secrets=["tok-abc"],
    )

    assert "tok-abc" not in caplog.text
    assert MASK in caplog.text
    assert result.args[-1] == MASK


def test_runner_rejects_empty_args_and_bad_timeout() -> None:
    with pytest.raises(ValueError):
        CommandRunner(timeout_seconds=0)
    with pytest.raises(ValueError):
        CommandRunner().run([])


def test_mask_secrets_prefers_longest_match() -> None:
    assert mask_secrets("abc abcdef", ["abc", "abcdef"]) == f"{MASK} {MASK}"
    assert mask_secrets("plain", ["", "zzz"]) == "plain"
