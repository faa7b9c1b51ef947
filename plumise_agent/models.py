"""Result types returned by the Plumise node.

Field names follow Python style; `from_dict` reads the camelCase keys the
node sends in its JSON-RPC results.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Challenge:
    """A proof-of-work puzzle issued by the network."""

    id: str
    difficulty: int  # required leading zero bits
    data: str
    expires_at: int = 0  # unix seconds, 0 = no expiry

    def is_expired(self, now: float) -> bool:
        return self.expires_at > 0 and now >= self.expires_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Challenge":
        return cls(
            id=str(data["id"]),
            difficulty=int(data.get("difficulty", 0)),
            data=str(data.get("data", "")),
            expires_at=int(data.get("expiresAt", 0) or 0),
        )


@dataclass(frozen=True)
class SubmissionResult:
    """Network verdict on a submitted solution."""

    accepted: bool
    reward: str = "0"
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubmissionResult":
        return cls(
            accepted=bool(data.get("accepted", False)),
            reward=str(data.get("reward", "0")),
            message=str(data.get("message", "")),
        )


@dataclass(frozen=True)
class HeartbeatAck:
    acknowledged: bool
    next_expected: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeartbeatAck":
        return cls(
            acknowledged=bool(data.get("acknowledged", False)),
            next_expected=int(data.get("nextExpected", 0) or 0),
        )


@dataclass(frozen=True)
class RegisterResult:
    success: bool
    agent_id: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegisterResult":
        return cls(
            success=bool(data.get("success", False)),
            agent_id=str(data.get("agentId", "")),
            message=str(data.get("message", "")),
        )


@dataclass(frozen=True)
class AgentStatus:
    """Agent record as seen by the node."""

    registered: bool
    address: str
    uptime: int = 0
    last_heartbeat: int = 0
    challenges_solved: int = 0
    pending_reward: str = "0"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentStatus":
        return cls(
            registered=bool(data.get("registered", False)),
            address=str(data.get("address", "")),
            uptime=int(data.get("uptime", 0) or 0),
            last_heartbeat=int(data.get("lastHeartbeat", 0) or 0),
            challenges_solved=int(data.get("challengesSolved", 0) or 0),
            pending_reward=str(data.get("pendingReward", "0")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registered": self.registered,
            "address": self.address,
            "uptime": self.uptime,
            "lastHeartbeat": self.last_heartbeat,
            "challengesSolved": self.challenges_solved,
            "pendingReward": self.pending_reward,
        }


@dataclass(frozen=True)
class NetworkStats:
    total_agents: int = 0
    active_agents: int = 0
    total_challenges_solved: int = 0
    total_rewards_distributed: str = "0"
    current_block_number: int = 0
    network_hashrate: str = "0"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkStats":
        return cls(
            total_agents=int(data.get("totalAgents", 0) or 0),
            active_agents=int(data.get("activeAgents", 0) or 0),
            total_challenges_solved=int(data.get("totalChallengesSolved", 0) or 0),
            total_rewards_distributed=str(data.get("totalRewardsDistributed", "0")),
            current_block_number=int(data.get("currentBlockNumber", 0) or 0),
            network_hashrate=str(data.get("networkHashrate", "0")),
        )


@dataclass(frozen=True)
class RewardInfo:
    pending: str = "0"
    claimed: str = "0"
    total: str = "0"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardInfo":
        return cls(
            pending=str(data.get("pending", "0")),
            claimed=str(data.get("claimed", "0")),
            total=str(data.get("total", "0")),
        )


@dataclass(frozen=True)
class ClaimResult:
    tx_hash: str
    amount: str = "0"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimResult":
        return cls(
            tx_hash=str(data.get("txHash", "")),
            amount=str(data.get("amount", "0")),
        )
