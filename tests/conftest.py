"""Pytest configuration to make the project root importable.

This ensures that ``import func_to_form`` and ``import dash_app`` work when
tests are run from the repository root or other locations.
"""

import os
import sys

import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from func_to_form.engine import FormEngine  # noqa: E402
from func_to_form.session import AppSession  # noqa: E402


@pytest.fixture
def engine() -> FormEngine:
    return FormEngine(AppSession(session_id="test"))
