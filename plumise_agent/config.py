"""Configuration for Plumise agent."""

from dataclasses import dataclass
import os

DEFAULT_NODE_URL = "https://node-1.plumise.com/rpc"
NETWORKS = ("mainnet", "testnet")


@dataclass
class AgentConfig:
    """Configuration for the Plumise agent.

    Matches CLI arguments of `plumise-agent run`:
    - --private-key: Agent wallet key (hex, 0x prefix optional)
    - --node-url: Plumise node JSON-RPC endpoint
    - --network: "mainnet" or "testnet"
    - --heartbeat-interval: Heartbeat cadence in milliseconds
    - --solve-interval: Seconds between challenge attempts (0 disables)
    """

    # Required: agent wallet
    private_key: str

    # Node connection
    node_url: str = DEFAULT_NODE_URL
    network: str = "mainnet"
    request_timeout: float = 30.0  # seconds

    # Timing
    heartbeat_interval_ms: int = 60_000
    solve_interval: int = 0  # seconds, 0 = only on demand

    # Agent behavior
    skip_overlapping_heartbeats: bool = False
    debug: bool = False

    @property
    def heartbeat_interval(self) -> float:
        """Heartbeat interval in seconds."""
        return self.heartbeat_interval_ms / 1000

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Create config from environment variables.

        Environment variables:
        - PLUMISE_PRIVATE_KEY: Agent wallet key
        - PLUMISE_NODE_URL: Node JSON-RPC endpoint
        - PLUMISE_NETWORK: mainnet or testnet
        - PLUMISE_HEARTBEAT_INTERVAL_MS: Heartbeat interval in milliseconds
        - PLUMISE_SOLVE_INTERVAL: Seconds between challenge attempts
        - PLUMISE_REQUEST_TIMEOUT: HTTP timeout in seconds
        - PLUMISE_SKIP_OVERLAPPING: Skip a heartbeat while the previous one is in flight
        - PLUMISE_DEBUG: Enable debug logging
        """
        return cls(
            private_key=os.environ.get("PLUMISE_PRIVATE_KEY", ""),
            node_url=os.environ.get("PLUMISE_NODE_URL") or DEFAULT_NODE_URL,
            network=os.environ.get("PLUMISE_NETWORK", "mainnet"),
            request_timeout=float(os.environ.get("PLUMISE_REQUEST_TIMEOUT", "30")),
            heartbeat_interval_ms=int(os.environ.get("PLUMISE_HEARTBEAT_INTERVAL_MS", "60000")),
            solve_interval=int(os.environ.get("PLUMISE_SOLVE_INTERVAL", "0")),
            skip_overlapping_heartbeats=_env_flag("PLUMISE_SKIP_OVERLAPPING"),
            debug=_env_flag("PLUMISE_DEBUG"),
        )

    def validate(self) -> list[str]:
        """Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.private_key:
            errors.append("private_key is required (set PLUMISE_PRIVATE_KEY)")
        else:
            key = self.private_key[2:] if self.private_key.startswith("0x") else self.private_key
            if len(key) != 64:
                errors.append(f"private_key should be 64 hex chars, got {len(key)}")

        if not self.node_url.startswith(("http://", "https://")):
            errors.append(f"node_url must be an http(s) URL, got: {self.node_url}")

        if self.network not in NETWORKS:
            errors.append(f"network must be one of {', '.join(NETWORKS)}, got: {self.network}")

        if self.heartbeat_interval_ms <= 0:
            errors.append(f"heartbeat_interval_ms must be > 0, got: {self.heartbeat_interval_ms}")

        if self.solve_interval < 0:
            errors.append(f"solve_interval must be >= 0, got: {self.solve_interval}")

        if self.request_timeout <= 0:
            errors.append(f"request_timeout must be > 0, got: {self.request_timeout}")

        return errors


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")
