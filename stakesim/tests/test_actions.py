"""
Tests for action records and stake/unstake correlation.
"""

import json
import os
import tempfile

import pytest

from stakesim.core.actions import (
    Action,
    ActionKind,
    ActionType,
    load_actions,
    partition,
    save_actions,
    validate_correlation,
)
from stakesim.core.errors import CorrelationError

from .helpers import ALICE, BOB, stake_action, unstake_action


def test_from_dict_real_is_historical():
    a = Action.from_dict({
        "uuid": "u1",
        "type": "real",
        "action": "unstaking",
        "address": ALICE,
        "amount": "1000000000000000000000",
        "timestamp": 1_600_000_000,
        "stakeID": "3",
        "rewardsBN": "0x10",
    })

    assert a.type == ActionType.HISTORICAL
    assert a.kind == ActionKind.UNSTAKING
    assert a.amount == 10 ** 21
    assert a.stake_id == 3
    assert a.expected_reward == 16
    assert a.to_dict()["type"] == "real"


def test_from_dict_other_type_is_synthetic():
    a = Action.from_dict({
        "uuid": "u2",
        "type": "fake",
        "action": "staking",
        "address": BOB,
        "amount": 5,
        "timestamp": "100",
    })

    assert a.type == ActionType.SYNTHETIC
    assert a.stake_id is None
    assert a.expected_reward is None


def test_from_dict_missing_field():
    with pytest.raises(ValueError, match="address"):
        Action.from_dict({"uuid": "u", "type": "real", "action": "staking", "amount": 1, "timestamp": 1})


def test_from_dict_unknown_action_kind():
    with pytest.raises(ValueError):
        Action.from_dict({"uuid": "u", "type": "real", "action": "slashing", "address": ALICE, "amount": 1, "timestamp": 1})


def test_save_and_load_actions():
    actions = [stake_action("u1", ALICE, 10, 100), unstake_action("u1", ALICE, 10, 200, expected=5)]

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "actions.json")
        save_actions(path, actions)
        with open(path) as f:
            raw = json.load(f)
        loaded = load_actions(path)

    assert raw[1]["rewardsBN"] == "5"
    assert [a.to_dict() for a in loaded] == [a.to_dict() for a in actions]


def test_load_actions_requires_array():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "actions.json")
        with open(path, "w") as f:
            json.dump({"uuid": "u"}, f)
        with pytest.raises(ValueError):
            load_actions(path)


def test_partition_preserves_order():
    h1 = stake_action("h1", ALICE, 1, 1, type=ActionType.HISTORICAL)
    s1 = stake_action("s1", BOB, 1, 2)
    h2 = unstake_action("h1", ALICE, 1, 3, type=ActionType.HISTORICAL)

    historical, synthetic = partition([h1, s1, h2])

    assert historical == [h1, h2]
    assert synthetic == [s1]


def test_correlation_pairs():
    actions = [
        stake_action("a", ALICE, 1, 1),
        stake_action("b", BOB, 1, 2),
        unstake_action("b", BOB, 1, 3),
        unstake_action("a", ALICE, 1, 4),
    ]

    assert validate_correlation(actions) == {"a": (0, 3), "b": (1, 2)}


def test_correlation_rejects_unpaired_stake():
    with pytest.raises(CorrelationError, match="no corresponding unstaking"):
        validate_correlation([stake_action("a", ALICE, 1, 1)])


def test_correlation_rejects_unpaired_synthetic_unstake():
    with pytest.raises(CorrelationError, match="no corresponding staking"):
        validate_correlation([unstake_action("a", ALICE, 1, 1, stake_id=0)])


def test_correlation_rejects_unpaired_historical_unstake_without_stake_id():
    with pytest.raises(CorrelationError):
        validate_correlation([unstake_action("a", ALICE, 1, 1, type=ActionType.HISTORICAL)])


def test_correlation_allows_historical_unstake_of_older_stake():
    actions = [unstake_action("a", ALICE, 1, 1, type=ActionType.HISTORICAL, stake_id=7)]

    assert validate_correlation(actions) == {}


def test_correlation_rejects_duplicate_uuid():
    actions = [
        stake_action("a", ALICE, 1, 1),
        stake_action("a", BOB, 1, 2),
        unstake_action("a", ALICE, 1, 3),
    ]

    with pytest.raises(CorrelationError, match="uuid a"):
        validate_correlation(actions)


def test_correlation_rejects_unstake_before_stake():
    actions = [unstake_action("a", ALICE, 1, 1), stake_action("a", ALICE, 1, 2)]

    with pytest.raises(CorrelationError, match="precedes"):
        validate_correlation(actions)


def test_from_dict_big_number_reward():
    a = Action.from_dict({
        "uuid": "u3",
        "type": "real",
        "action": "unstaking",
        "address": ALICE,
        "amount": "1000",
        "timestamp": 200,
        "stakeID": 0,
        "rewardsBN": {"type": "BigNumber", "hex": "0x32"},
    })

    assert a.expected_reward == 50


@pytest.mark.parametrize("field,value", [
    ("amount", 2.7),
    ("amount", 1.0000000000000001e21),
    ("rewardsBN", {"type": "BigNumber"}),
    ("rewardsBN", [1, 2]),
    ("timestamp", None),
])
def test_from_dict_rejects_lossy_or_malformed_quantities(field, value):
    data = {"uuid": "u", "type": "real", "action": "staking", "address": ALICE, "amount": "1", "timestamp": 1}
    data[field] = value

    with pytest.raises(ValueError):
        Action.from_dict(data)


def test_from_dict_non_mapping_entry():
    with pytest.raises(ValueError):
        Action.from_dict(["not", "an", "action"])
