"""Agent node service.

Bundles the gateway, signer and heartbeat loop behind the operations the
CLI exposes: start, stop, status, reward, claim and solve. Each AgentNode
owns its own collaborators, so several nodes can coexist in one process.
"""

import logging
import time
from typing import Any, Dict

from .challenge import ChallengeOutcome, solve_and_submit
from .config import AgentConfig
from .exceptions import AgentError
from .heartbeat import HeartbeatLoop
from .rpc_client import RpcClient
from .signer import WalletSigner

logger = logging.getLogger("plumise-agent")


class AgentNode:
    """A single agent's presence on the Plumise network."""

    def __init__(self, gateway, signer, heartbeat: HeartbeatLoop):
        self.gateway = gateway
        self.signer = signer
        self.heartbeat = heartbeat

    @classmethod
    def from_config(cls, config: AgentConfig) -> "AgentNode":
        """Build a node with a real RPC client and wallet."""
        gateway = RpcClient(config.node_url, timeout=config.request_timeout)
        signer = WalletSigner(config.private_key)
        heartbeat = HeartbeatLoop(
            gateway,
            signer,
            config.heartbeat_interval_ms,
            skip_overlapping=config.skip_overlapping_heartbeats,
        )
        return cls(gateway, signer, heartbeat)

    @property
    def address(self) -> str:
        return self.signer.address

    def register(self):
        """Sign a registration message and register with the node.

        Raises:
            AgentError: If signing or the RPC call fails
        """
        message = f"register:{self.address}:{int(time.time())}"
        signature = self.signer.sign(message)
        logger.info(f"Registering agent {self.address}")
        return self.gateway.register(self.address, signature)

    def start(self) -> Dict[str, Any]:
        """Register the agent and start the heartbeat loop."""
        try:
            result = self.register()
        except AgentError as e:
            logger.error(f"Failed to start node: {e}")
            return {"status": "error", "address": self.address, "error": f"Failed to start node: {e}"}

        self.heartbeat.start()

        return {
            "status": "started",
            "agentId": result.agent_id,
            "address": self.address,
            "heartbeatRunning": self.heartbeat.is_running,
            "message": result.message,
        }

    def stop(self) -> Dict[str, Any]:
        """Stop the heartbeat loop."""
        self.heartbeat.stop()
        return {
            "status": "stopped",
            "address": self.address,
            "heartbeatRunning": self.heartbeat.is_running,
            "totalHeartbeats": self.heartbeat.heartbeat_count,
        }

    def status(self) -> Dict[str, Any]:
        """Remote agent status merged with local heartbeat state."""
        heartbeat = self.heartbeat.to_dict()
        try:
            agent = self.gateway.get_status(self.address).to_dict()
        except AgentError as e:
            logger.warning(f"Failed to get status: {e}")
            agent = {"address": self.address, "registered": False, "error": str(e)}

        return {"agent": agent, "heartbeat": heartbeat}

    def reward(self) -> Dict[str, Any]:
        """Reward totals and wallet balance for this agent.

        Raises:
            AgentError: If an RPC call fails
        """
        reward = self.gateway.get_reward(self.address)
        balance = self.gateway.get_balance(self.address)
        return {
            "address": self.address,
            "pending": reward.pending,
            "claimed": reward.claimed,
            "total": reward.total,
            "balanceWei": str(balance),
        }

    def claim_reward(self) -> Dict[str, Any]:
        """Claim pending rewards, skipping the call when nothing is pending."""
        try:
            reward = self.gateway.get_reward(self.address)
            if _is_zero(reward.pending):
                return {"status": "nothing_to_claim", "address": self.address, "message": "No pending rewards to claim"}

            signature = self.signer.sign(f"claim:{self.address}:{int(time.time())}")
            result = self.gateway.claim_reward(self.address, signature)
        except AgentError as e:
            logger.warning(f"Failed to claim reward: {e}")
            return {"status": "error", "address": self.address, "error": f"Failed to claim reward: {e}"}

        logger.info(f"Claimed {result.amount} (tx {result.tx_hash})")
        return {
            "status": "claimed",
            "address": self.address,
            "claimed": result.amount,
            "txHash": result.tx_hash,
        }

    def solve_challenge(self) -> ChallengeOutcome:
        return solve_and_submit(self.gateway, self.signer)

    def close(self) -> None:
        self.heartbeat.stop()
        close = getattr(self.gateway, "close", None)
        if close is not None:
            close()


def _is_zero(amount: str) -> bool:
    try:
        return float(amount) == 0
    except ValueError:
        return False
