"""Shared test fixtures for the readiness API tests."""

import pytest

from fakes import FakeRunner


@pytest.fixture
def all_tools_runner() -> FakeRunner:
    return FakeRunner({
        "docker": "Docker version 27.0.3, build 7d4bcd8",
        "kubectl": "Client Version: v1.30.2\nKustomize Version: v5.0.4",
        "node": "v20.11.1",
        "pnpm": "9.1.0",
        "aws": "aws-cli/2.15.30 Python/3.11.8",
        "az": "azure-cli 2.58.0",
        "gcloud": "Google Cloud SDK 470.0.0",
    })
