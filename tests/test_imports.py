"""
Each entry point must import on its own in a fresh interpreter.

The test session imports everything through conftest, which would hide an
import cycle that only shows up from a particular first import.
"""

import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize("module", [
    "main",
    "app.core.verification",
    "app.core.deps",
    "app.crud",
    "app.schemas.phone",
    "app.tasks",
])
def test_module_imports_cleanly(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr


def test_state_enum_shared_by_model_and_service():
    from app.core.verification import VerificationState as ServiceState
    from app.models.phone_verification import VerificationState as ModelState

    assert ServiceState is ModelState
