"""Lint project docstrings with pydocstyle."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

# Docstrings follow the Google convention; undocumented helpers are allowed.
MISSING_DOCSTRING_CODES = "D100,D101,D102,D103,D104,D105,D106,D107"
PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.skipif(
    shutil.which("pydocstyle") is None, reason="pydocstyle is not installed"
)
def test_pydocstyle() -> None:
    """Run pydocstyle on the admin and service modules."""
    result = subprocess.run(
        [
            "pydocstyle",
            "--convention=google",
            f"--add-ignore={MISSING_DOCSTRING_CODES}",
            "clubpoints_app/admin.py",
            "clubpoints_app/services",
        ],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stdout + result.stderr
