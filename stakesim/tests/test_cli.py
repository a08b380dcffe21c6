"""
Tests for the stakesim command line.
"""

import json
import os
import tempfile

from typer.testing import CliRunner

from cli.main import app
from stakesim.core.actions import ActionType

from .helpers import ALICE, BOB, stake_action, unstake_action

runner = CliRunner()


def invoke(*args):
    return runner.invoke(app, ["--log-level", "ERROR", *args])


def write_batch(tmpdir, actions):
    path = os.path.join(tmpdir, "actions.json")
    with open(path, "w") as f:
        json.dump([a.to_dict() for a in actions], f)
    return path


def test_version():
    result = invoke("version")

    assert result.exit_code == 0
    assert "stakesim" in result.stdout


def test_simulate_memory_json():
    actions = [
        stake_action("u1", ALICE, 10 ** 21, 100),
        stake_action("u2", BOB, 10 ** 20, 150),
        unstake_action("u1", ALICE, 10 ** 21, 200, expected=50),
        unstake_action("u2", BOB, 10 ** 20, 300, expected=0),
    ]
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, actions)
        report_path = os.path.join(tmpdir, "report.json")

        result = invoke("simulate", path, "--json", "--report", report_path)

        assert result.exit_code == 0, result.stdout
        output = json.loads(result.stdout)
        with open(report_path) as f:
            assert json.load(f) == output

    assert output["stats"]["reconciled"] == 2
    assert output["finalTimestamp"] == 300
    assert [row["action"] for row in output["actions"]] == ["staking", "staking", "unstaking", "unstaking"]
    assert output["actions"][2]["stakeID"] == "0"


def test_simulate_synthetic_only_drops_historical():
    actions = [
        stake_action("h1", ALICE, 10 ** 18, 100, type=ActionType.HISTORICAL),
        stake_action("s1", BOB, 10 ** 18, 120),
        unstake_action("s1", BOB, 10 ** 18, 200),
    ]
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, actions)

        result = invoke("simulate", path, "--synthetic-only", "--json")

    assert result.exit_code == 0, result.stdout
    assert [row["uuid"] for row in json.loads(result.stdout)["actions"]] == ["s1", "s1"]


def test_simulate_rejects_uncorrelated_batch():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, [stake_action("u1", ALICE, 1, 100)])

        result = invoke("simulate", path, "--json")

    assert result.exit_code == 1
    assert "no corresponding unstaking" in json.loads(result.stdout)["error"]


def test_simulate_missing_file():
    result = invoke("simulate", "/nonexistent/actions.json", "--json")

    assert result.exit_code == 1
    assert json.loads(result.stdout)["path"] == "/nonexistent/actions.json"


def test_actions_inspect():
    actions = [stake_action("u1", ALICE, 1, 100), unstake_action("u1", ALICE, 1, 200)]
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, actions)

        result = invoke("actions", "inspect", path, "--json")

    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["count"] == 2
    assert output["pairs"] == 1
    assert output["valid"] is True
    assert output["counts"] == {"synthetic/staking": 1, "synthetic/unstaking": 1}


def test_actions_inspect_invalid():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, [unstake_action("u1", ALICE, 1, 200)])

        result = invoke("actions", "inspect", path)

    assert result.exit_code == 1


def test_harvest_requires_output():
    result = invoke("harvest", "--start", "0", "--backend", "memory")

    assert result.exit_code == 1


def test_harvest_rejects_unknown_filter():
    result = invoke("harvest", "--start", "0", "--filter", "Transfer", "--out", "x.json", "--backend", "memory")

    assert result.exit_code == 1


def test_harvest_memory_to_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        out = os.path.join(tmpdir, "stakes.json")
        prefix = os.path.join(tmpdir, "chunks", "stakes")

        result = invoke("harvest", "--start", "0", "--backend", "memory", "--out", out, "--chunks-prefix", prefix)

        assert result.exit_code == 0, result.stdout
        with open(out) as f:
            assert json.load(f) == []
        assert os.path.exists(prefix + "-0-0.json")


def test_harvest_web3_without_rpc(monkeypatch):
    monkeypatch.delenv("STAKESIM_RPC_URL", raising=False)

    result = invoke("harvest", "--start", "0", "--out", "x.json")

    assert result.exit_code == 1


def test_simulate_reverted_action_reports_index():
    actions = [
        stake_action("u1", ALICE, 10 ** 18, 100),
        stake_action("u2", BOB, 0, 150),
        unstake_action("u1", ALICE, 10 ** 18, 200),
        unstake_action("u2", BOB, 0, 250),
    ]
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_batch(tmpdir, actions)

        result = invoke("simulate", path, "--json")

    assert result.exit_code == 2
    output = json.loads(result.stdout)
    assert output["error"].startswith("action #1 ")
    assert "reverted" in output["error"]
    assert output["index"] == 1
    assert output["action"]["uuid"] == "u2"
    assert output["snapshot"]["index"] == 1


def test_actions_inspect_malformed_big_number():
    entry = unstake_action("u1", ALICE, 1, 200).to_dict()
    entry["rewardsBN"] = {"type": "BigNumber"}
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "actions.json")
        with open(path, "w") as f:
            json.dump([stake_action("u1", ALICE, 1, 100).to_dict(), entry], f)

        result = invoke("actions", "inspect", path, "--json")

    assert result.exit_code == 1
    assert "without hex field" in json.loads(result.stdout)["error"]
