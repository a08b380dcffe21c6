"""
Contract ABIs and protocol constants.

Only the functions and events the harvester, executor and warm-up touch are
declared.
"""

from web3 import Web3

CLASSIC = "classic"
STAKE = "stake"
UNSTAKE = "unstake"


def hash4bytes(text: str) -> bytes:
    """First four bytes of keccak256(text)."""
    return bytes(Web3.keccak(text=text))[:4]


def classic_action_hash(action: str) -> str:
    """
    Reward adviser action id for a classic stake type.

    bytes4(keccak256(abi.encodePacked(bytes4(action), bytes4("classic"))))
    """
    return "0x" + bytes(Web3.keccak(hash4bytes(action) + hash4bytes(CLASSIC)))[:4].hex()


def _event(name, inputs):
    return {
        "anonymous": False,
        "name": name,
        "type": "event",
        "inputs": [{"indexed": idx, "name": n, "type": t} for n, t, idx in inputs],
    }


def _fn(name, inputs, outputs=(), mutability="nonpayable"):
    return {
        "name": name,
        "type": "function",
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


STAKING_ABI = [
    _fn("stake", [("amount", "uint256"), ("stakeType", "bytes4"), ("data", "bytes")],
        [("stakeID", "uint256")]),
    _fn("unstake", [("stakeID", "uint256"), ("data", "bytes"), ("isForced", "bool")]),
    _fn("totalStaked", [], [("", "uint96")], "view"),
    _event("StakeCreated", [
        ("account", "address", True),
        ("stakeID", "uint256", True),
        ("amount", "uint256", False),
        ("lockedTill", "uint32", False),
    ]),
    _event("StakeClaimed", [
        ("account", "address", True),
        ("stakeID", "uint256", True),
        ("amount", "uint256", False),
    ]),
]

TOKEN_ABI = [
    _fn("balanceOf", [("account", "address")], [("", "uint256")], "view"),
    _fn("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")], "view"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn("transfer", [("to", "address"), ("amount", "uint256")], [("", "bool")]),
    _event("Transfer", [
        ("from", "address", True),
        ("to", "address", True),
        ("value", "uint256", False),
    ]),
    _event("Approval", [
        ("owner", "address", True),
        ("spender", "address", True),
        ("value", "uint256", False),
    ]),
]

REWARD_CONTROLLER_ABI = [
    _fn("setActive", []),
    _fn("isActive", [], [("", "bool")], "view"),
    _event("RewardPaid", [
        ("staker", "address", True),
        ("reward", "uint256", False),
    ]),
]

REWARD_MASTER_ABI = [
    _fn("addRewardAdviser", [("oracle", "address"), ("action", "bytes4"), ("adviser", "address")]),
    _fn("rewardAdvisers", [("oracle", "address"), ("action", "bytes4")], [("", "address")], "view"),
]

ABIS = {
    "staking": STAKING_ABI,
    "token": TOKEN_ABI,
    "reward_controller": REWARD_CONTROLLER_ABI,
    "reward_master": REWARD_MASTER_ABI,
}
