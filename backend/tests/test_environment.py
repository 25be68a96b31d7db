"""Tests for runtime context detection and the command check policy table."""

import pytest

from app.core.environment import (
    CloudProvider,
    RuntimeContext,
    detect_cloud_provider,
    detect_runtime_context,
    is_docker,
)
from app.core.probe_policy import ProbeStrategy, resolve_strategy


class TestRuntimeContext:

    def test_empty_environment_is_host(self):
        assert detect_runtime_context({}) == RuntimeContext.HOST

    @pytest.mark.parametrize("key,value", [
        ("DOCKER", "true"),
        ("IN_DOCKER", "true"),
        ("IN_DOCKER", "1"),
    ])
    def test_docker_flags(self, key, value):
        assert detect_runtime_context({key: value}) == RuntimeContext.DOCKER

    def test_docker_flag_false_is_host(self):
        assert detect_runtime_context({"DOCKER": "false"}) == RuntimeContext.HOST

    def test_kubernetes_wins_over_docker(self):
        env = {"KUBERNETES_SERVICE_HOST": "10.0.0.1", "DOCKER": "true"}
        assert detect_runtime_context(env) == RuntimeContext.KUBERNETES
        assert is_docker(env) is False


class TestCloudProvider:

    def test_unknown_without_signals(self):
        assert detect_cloud_provider({}) == CloudProvider.UNKNOWN

    @pytest.mark.parametrize("env,expected", [
        ({"AWS_REGION": "us-east-1"}, CloudProvider.AWS),
        ({"AZURE_SUBSCRIPTION_ID": "sub"}, CloudProvider.AZURE),
        ({"GCP_PROJECT_ID": "proj"}, CloudProvider.GCP),
        ({"GOOGLE_CLOUD_PROJECT": "proj"}, CloudProvider.GCP),
    ])
    def test_sdk_signals(self, env, expected):
        assert detect_cloud_provider(env) == expected

    def test_explicit_override_wins(self):
        assert detect_cloud_provider({"AWS_REGION": "us-east-1"}, override="gcp") == CloudProvider.GCP

    def test_cloud_provider_env_variable(self):
        assert detect_cloud_provider({"CLOUD_PROVIDER": "Azure"}) == CloudProvider.AZURE

    def test_invalid_override_falls_back_to_signals(self):
        assert detect_cloud_provider({"AWS_REGION": "eu-west-1"}, override="ibm") == CloudProvider.AWS


class TestProbePolicy:

    @pytest.mark.parametrize("command", ["docker", "kubectl", "node", "pnpm", "aws", "az", "gcloud"])
    def test_host_spawns_everything(self, command):
        assert resolve_strategy(RuntimeContext.HOST, command) == ProbeStrategy.SPAWN

    @pytest.mark.parametrize("context", [RuntimeContext.DOCKER, RuntimeContext.KUBERNETES])
    @pytest.mark.parametrize("command", ["docker", "kubectl", "aws", "az", "gcloud"])
    def test_container_assumes_host_tools(self, context, command):
        assert resolve_strategy(context, command) == ProbeStrategy.ASSUME_INSTALLED

    @pytest.mark.parametrize("context", [RuntimeContext.DOCKER, RuntimeContext.KUBERNETES])
    @pytest.mark.parametrize("command", ["node", "pnpm"])
    def test_container_still_checks_image_tools(self, context, command):
        assert resolve_strategy(context, command) == ProbeStrategy.SPAWN

    def test_unlisted_command_spawns(self):
        assert resolve_strategy(RuntimeContext.DOCKER, "terraform") == ProbeStrategy.SPAWN
