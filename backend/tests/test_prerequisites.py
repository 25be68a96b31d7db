"""Tests for the prerequisite aggregator."""

import logging
import random
from unittest.mock import patch

import pytest

from app.core.probes import ProbeResult
from app.models.setup import PrerequisiteState
from app.services.prerequisites import PrerequisiteAggregator
from fakes import FakeRunner

BASE_NAMES = ["Docker", "kubectl", "Node.js", "pnpm"]


class TestDefinitions:

    def test_base_list_without_cloud(self, all_tools_runner):
        aggregator = PrerequisiteAggregator(all_tools_runner, env={})
        assert [d.name for d in aggregator.definitions()] == BASE_NAMES

    @pytest.mark.parametrize("env,cloud_name", [
        ({"AWS_REGION": "us-east-1"}, "AWS CLI"),
        ({"AZURE_SUBSCRIPTION_ID": "sub"}, "Azure CLI"),
        ({"GCP_PROJECT_ID": "proj"}, "gcloud CLI"),
    ])
    def test_one_cloud_entry_appended_last(self, all_tools_runner, env, cloud_name):
        aggregator = PrerequisiteAggregator(all_tools_runner, env=env)
        definitions = aggregator.definitions()
        assert [d.name for d in definitions] == BASE_NAMES + [cloud_name]
        assert definitions[-1].required is False

    def test_override_selects_cloud(self, all_tools_runner):
        aggregator = PrerequisiteAggregator(all_tools_runner, env={}, cloud_override="azure")
        assert aggregator.definitions()[-1].name == "Azure CLI"


class TestGetPrerequisites:

    async def test_all_installed(self, all_tools_runner):
        aggregator = PrerequisiteAggregator(all_tools_runner, env={})
        prerequisites = await aggregator.get_prerequisites()

        assert [p.name for p in prerequisites] == BASE_NAMES
        assert all(p.status == PrerequisiteState.INSTALLED for p in prerequisites)
        assert prerequisites[2].version == "v20.11.1"
        assert all(p.required for p in prerequisites)

    async def test_missing_tool(self):
        runner = FakeRunner({"docker": "Docker version 27.0.3", "node": "v20.11.1", "pnpm": "9.1.0"})
        aggregator = PrerequisiteAggregator(runner, env={})
        prerequisites = {p.name: p for p in await aggregator.get_prerequisites()}

        assert prerequisites["kubectl"].status == PrerequisiteState.MISSING
        assert prerequisites["kubectl"].version is None
        assert prerequisites["Docker"].status == PrerequisiteState.INSTALLED

    async def test_never_left_checking(self):
        aggregator = PrerequisiteAggregator(FakeRunner({}), env={"AWS_REGION": "us-east-1"})
        prerequisites = await aggregator.get_prerequisites()
        assert len(prerequisites) == 5
        assert all(p.status != PrerequisiteState.CHECKING for p in prerequisites)

    @pytest.mark.parametrize("seed", [1, 7, 42, 1234])
    async def test_order_is_declaration_order_under_random_delays(self, all_tools_runner, seed):
        rng = random.Random(seed)
        all_tools_runner.delays = {
            command: rng.uniform(0, 0.05)
            for command in ("docker", "kubectl", "node", "pnpm", "gcloud")
        }
        aggregator = PrerequisiteAggregator(all_tools_runner, env={"GCP_PROJECT_ID": "p"})
        prerequisites = await aggregator.get_prerequisites()
        assert [p.name for p in prerequisites] == BASE_NAMES + ["gcloud CLI"]

    async def test_reverse_completion_order(self, all_tools_runner):
        all_tools_runner.delays = {"docker": 0.04, "kubectl": 0.03, "node": 0.02, "pnpm": 0.0}
        aggregator = PrerequisiteAggregator(all_tools_runner, env={})
        prerequisites = await aggregator.get_prerequisites()
        assert [p.name for p in prerequisites] == BASE_NAMES

    async def test_container_assumes_host_tools(self):
        runner = FakeRunner({"node": "v20.11.1", "pnpm": "9.1.0"})
        aggregator = PrerequisiteAggregator(runner, env={"IN_DOCKER": "true", "AWS_REGION": "x"})
        prerequisites = {p.name: p for p in await aggregator.get_prerequisites()}

        assert prerequisites["Docker"].status == PrerequisiteState.INSTALLED
        assert prerequisites["kubectl"].status == PrerequisiteState.INSTALLED
        assert prerequisites["AWS CLI"].status == PrerequisiteState.INSTALLED
        assert sorted(runner.which_calls) == ["node", "pnpm"]

    async def test_container_still_reports_missing_pnpm(self):
        runner = FakeRunner({"node": "v20.11.1"})
        aggregator = PrerequisiteAggregator(runner, env={"DOCKER": "true"})
        prerequisites = {p.name: p for p in await aggregator.get_prerequisites()}
        assert prerequisites["pnpm"].status == PrerequisiteState.MISSING

    async def test_check_error_only_affects_its_prerequisite(self, all_tools_runner):
        async def flaky_probe(spec, runner, strategy, timeout):
            if spec.command == "kubectl":
                raise RuntimeError("check crashed")
            return ProbeResult(installed=True, version="1.0")

        aggregator = PrerequisiteAggregator(all_tools_runner, env={})
        with patch("app.services.prerequisites.probe_command", side_effect=flaky_probe):
            prerequisites = await aggregator.get_prerequisites()

        assert [p.name for p in prerequisites] == BASE_NAMES
        by_name = {p.name: p for p in prerequisites}
        assert by_name["kubectl"].status == PrerequisiteState.MISSING
        assert by_name["Docker"].status == PrerequisiteState.INSTALLED
        assert by_name["pnpm"].version == "1.0"

    async def test_missing_reason_is_logged(self, caplog):
        runner = FakeRunner({"docker": "Docker version 27.0.3", "node": "v20.11.1", "pnpm": "9.1.0"})
        aggregator = PrerequisiteAggregator(runner, env={})
        with caplog.at_level(logging.DEBUG, logger="app.services.prerequisites"):
            await aggregator.get_prerequisites()
        assert "Prerequisite kubectl: not found on PATH" in caplog.text

    async def test_assumed_tools_are_logged(self, caplog):
        aggregator = PrerequisiteAggregator(FakeRunner({"node": "v20", "pnpm": "9"}), env={"DOCKER": "true"})
        with caplog.at_level(logging.DEBUG, logger="app.services.prerequisites"):
            await aggregator.get_prerequisites()
        assert "Prerequisite Docker: assumed installed on host" in caplog.text
