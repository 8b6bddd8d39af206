"""Pytest configuration for the Ember test suite."""

import shutil
import subprocess
from pathlib import Path

import pytest

from ember.compiler import CompileResult
from ember.toolchain import build_program

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"

needs_gcc = pytest.mark.skipif(shutil.which("gcc") is None, reason="gcc is not installed")


def read_example(name: str) -> str:
    with open(EXAMPLES_DIR / name, "r", encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def execute(tmp_path, monkeypatch):
    """Build a successful compile result with gcc and return its stdout."""
    monkeypatch.setenv("CC", "gcc")

    def _execute(result: CompileResult) -> str:
        c_path = tmp_path / "out.c"
        binary = tmp_path / "program"
        assert build_program(result, c_path, binary), result.report()
        proc = subprocess.run([str(binary)], capture_output=True, text=True, timeout=10)
        assert proc.returncode == 0
        return proc.stdout

    return _execute
