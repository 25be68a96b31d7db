"""Shared fixtures for the developer launcher tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.models.setup import Prerequisite, PrerequisiteState  # noqa: E402


@pytest.fixture
def prerequisites():
    """A scan result with one required tool missing and one optional tool missing."""
    return [
        Prerequisite(name="Docker", status=PrerequisiteState.INSTALLED,
                     version="Docker version 27.0.3", required=True, description="Container runtime"),
        Prerequisite(name="kubectl", status=PrerequisiteState.MISSING,
                     required=True, description="Kubernetes CLI"),
        Prerequisite(name="Node.js", status=PrerequisiteState.INSTALLED,
                     version="v20.11.1", required=True, description="v18 or higher"),
        Prerequisite(name="AWS CLI", status=PrerequisiteState.MISSING,
                     required=False, description="For EKS access"),
    ]
