"""JSON-RPC client for the Plumise node's agent_* namespace.

Every agent call is a single POST of a JSON-RPC 2.0 envelope. Failures of
any kind (transport, HTTP status, JSON-RPC error member) surface as RpcError.
"""

import itertools
import logging
import threading
from typing import Any, List, Optional

import httpx

from .exceptions import RpcError
from .models import (
    AgentStatus,
    Challenge,
    ClaimResult,
    HeartbeatAck,
    NetworkStats,
    RegisterResult,
    RewardInfo,
    SubmissionResult,
)

logger = logging.getLogger("plumise-agent")


class RpcClient:
    """Client for a Plumise node JSON-RPC endpoint."""

    def __init__(self, node_url: str, timeout: float = 30.0):
        """Initialize the client.

        Args:
            node_url: Full JSON-RPC URL, e.g. https://node-1.plumise.com/rpc
            timeout: Per-request timeout in seconds
        """
        self.node_url = node_url
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _next_id(self) -> int:
        # Heartbeat ticks call in from several threads
        with self._id_lock:
            return next(self._ids)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send a raw JSON-RPC request and return its `result`.

        Args:
            method: RPC method name, e.g. "agent_heartbeat"
            params: Positional parameters

        Returns:
            The decoded `result` member (may be None)

        Raises:
            RpcError: On transport failure, non-2xx status, a malformed body
                or an `error` member
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC -> {method} (id={payload['id']})")

        try:
            response = self._client.post(self.node_url, json=payload)
        except httpx.TimeoutException:
            raise RpcError(f"RPC timeout calling {method} on {self.node_url}")
        except httpx.HTTPError as e:
            raise RpcError(f"RPC connection failed to {self.node_url}: {e}")

        if not response.is_success:
            raise RpcError(f"RPC HTTP error: {response.status_code} {response.reason_phrase}")

        try:
            body = response.json()
        except ValueError:
            raise RpcError(f"RPC returned invalid JSON for {method}")

        if not isinstance(body, dict):
            raise RpcError(f"RPC returned a malformed response for {method}: {body!r}")

        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                raise RpcError(f"RPC error: {error}")
            code = error.get("code")
            raise RpcError(f"RPC error [{code}]: {error.get('message', '')}", code=code)

        return body.get("result")

    def _call_for(self, model, method: str, params: List[Any]):
        """Call `method` and parse its object result into `model`.

        Raises:
            RpcError: If the call fails or the result does not fit the model
        """
        result = self.call(method, params)
        if result is None:
            result = {}
        return _parse(model, result, method)

    def _call_quantity(self, method: str, params: List[Any]) -> int:
        result = self.call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise RpcError(f"RPC returned a malformed quantity for {method}: {result!r}")

    # Agent lifecycle

    def register(self, address: str, signature: str) -> RegisterResult:
        return self._call_for(RegisterResult, "agent_register", [address, signature])

    def send_heartbeat(self, address: str, signature: str) -> HeartbeatAck:
        return self._call_for(HeartbeatAck, "agent_heartbeat", [address, signature])

    # Agent status

    def get_status(self, address: str) -> AgentStatus:
        result = self.call("agent_getStatus", [address]) or {}
        if isinstance(result, dict):
            result.setdefault("address", address)
        return _parse(AgentStatus, result, "agent_getStatus")

    def get_network_stats(self) -> NetworkStats:
        return self._call_for(NetworkStats, "agent_getNetworkStats", [])

    # Rewards

    def get_reward(self, address: str) -> RewardInfo:
        return self._call_for(RewardInfo, "agent_getReward", [address])

    def claim_reward(self, address: str, signature: str) -> ClaimResult:
        return self._call_for(ClaimResult, "agent_claimReward", [address, signature])

    # Challenges

    def fetch_challenge(self, address: str) -> Optional[Challenge]:
        """Get the current challenge, or None when the node has none to offer."""
        result = self.call("agent_getChallenge", [address])
        if not result:
            return None
        if isinstance(result, dict) and not result.get("id"):
            return None
        return _parse(Challenge, result, "agent_getChallenge")

    def submit_solution(
        self,
        address: str,
        challenge_id: str,
        nonce: str,
        signature: str,
    ) -> SubmissionResult:
        return self._call_for(
            SubmissionResult,
            "agent_submitSolution",
            [address, challenge_id, nonce, signature],
        )

    # Standard Ethereum RPC

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        return self._call_quantity("eth_getBalance", [address, "latest"])


def _parse(model, result: Any, method: str):
    if not isinstance(result, dict):
        raise RpcError(f"RPC returned a malformed result for {method}: {result!r}")
    try:
        return model.from_dict(result)
    except (KeyError, TypeError, ValueError) as e:
        raise RpcError(f"RPC returned a malformed result for {method}: {e}")
