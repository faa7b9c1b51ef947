#!/usr/bin/env python3
"""Plumise Agent - keep an agent alive on the Plumise network.

Usage:
    plumise-agent run --private-key KEY [--node-url URL] [--solve-interval 300]
    plumise-agent status
    plumise-agent solve
    plumise-agent reward
    plumise-agent claim

Or with environment variables:
    PLUMISE_PRIVATE_KEY=0x... PLUMISE_NODE_URL=https://node-1.plumise.com/rpc plumise-agent run
"""

import functools
import json
import signal
import sys
import threading
import time
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.table import Column, Table

from . import __version__
from .config import DEFAULT_NODE_URL, AgentConfig
from .exceptions import AgentError
from .node import AgentNode
from .utils import setup_logging, unix_to_iso

console = Console()

# How often the run loop wakes up to check state
MONITOR_INTERVAL = 10


def agent_options(func):
    """Shared connection options; passes a validated AgentConfig as `config`."""

    @click.option("--private-key", envvar="PLUMISE_PRIVATE_KEY", required=True, help="Agent wallet private key (hex)")
    @click.option("--node-url", envvar="PLUMISE_NODE_URL", default=DEFAULT_NODE_URL, help="Plumise node JSON-RPC URL")
    @click.option("--network", envvar="PLUMISE_NETWORK", default="mainnet", type=click.Choice(["mainnet", "testnet"]), help="Network name")
    @click.option("--timeout", envvar="PLUMISE_REQUEST_TIMEOUT", default=30.0, type=float, help="RPC timeout in seconds")
    @click.option("--debug", is_flag=True, envvar="PLUMISE_DEBUG", help="Enable debug logging")
    @functools.wraps(func)
    def wrapper(private_key: str, node_url: str, network: str, timeout: float, debug: bool, **kwargs):
        logger = setup_logging(debug=debug)
        config = AgentConfig(
            private_key=private_key,
            node_url=node_url,
            network=network,
            request_timeout=timeout,
            debug=debug,
            heartbeat_interval_ms=kwargs.pop("heartbeat_interval", 60_000),
            solve_interval=kwargs.pop("solve_interval", 0),
            skip_overlapping_heartbeats=kwargs.pop("skip_overlapping", False),
        )

        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(f"Config error: {error}")
            sys.exit(1)

        return func(config, **kwargs)

    return wrapper


def _build_node(config: AgentConfig) -> AgentNode:
    try:
        return AgentNode.from_config(config)
    except AgentError as e:
        setup_logging(debug=config.debug).error(f"Failed to load wallet: {e}")
        sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="plumise-agent")
def cli():
    """Plumise Agent - heartbeat and challenge solving for Plumise agents."""


@cli.command()
@click.option("--heartbeat-interval", envvar="PLUMISE_HEARTBEAT_INTERVAL_MS", default=60_000, type=int, help="Heartbeat interval in milliseconds")
@click.option("--solve-interval", envvar="PLUMISE_SOLVE_INTERVAL", default=0, type=int, help="Seconds between challenge attempts (0 disables)")
@click.option("--skip-overlapping", is_flag=True, envvar="PLUMISE_SKIP_OVERLAPPING", help="Skip a heartbeat while the previous one is in flight")
@click.option("--once", is_flag=True, help="Run once (register + single heartbeat) then exit")
@agent_options
def run(config: AgentConfig, once: bool):
    """Register the agent and keep it alive."""
    logger = setup_logging(debug=config.debug)
    node = _build_node(config)

    logger.info(f"Plumise Agent v{__version__}")
    logger.info(f"Address: {node.address}")
    logger.info(f"Node: {config.node_url} ({config.network})")

    if once:
        _run_once(node, config)
        return

    shutdown = threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        shutdown.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Step 1: Register and start heartbeats
    result = node.start()
    if result["status"] != "started":
        logger.error(result["error"])
        node.close()
        sys.exit(1)

    logger.info(f"Agent registered (id: {result['agentId'] or '-'}) {result['message']}")

    # Step 2: Monitor heartbeats and solve challenges until stopped
    last_error: Optional[str] = None
    next_solve = time.monotonic() if config.solve_interval else None
    wait = min(MONITOR_INTERVAL, config.solve_interval) if config.solve_interval else MONITOR_INTERVAL

    try:
        while not shutdown.is_set():
            state = node.heartbeat.snapshot()
            if state.last_error != last_error:
                if state.last_error:
                    logger.warning(f"Heartbeat failing: {state.last_error}")
                else:
                    logger.info(f"Heartbeat recovered ({state.heartbeat_count} sent)")
                last_error = state.last_error

            if next_solve is not None and time.monotonic() >= next_solve:
                outcome = node.solve_challenge()
                logger.info(f"Challenge attempt: {outcome.status}")
                next_solve = time.monotonic() + config.solve_interval

            shutdown.wait(timeout=wait)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    finally:
        summary = node.stop()
        node.close()
        logger.info(f"Agent shutdown complete ({summary['totalHeartbeats']} heartbeats sent)")


def _run_once(node: AgentNode, config: AgentConfig) -> None:
    logger = setup_logging(debug=config.debug)
    logger.info("Running in --once mode")

    try:
        result = node.register()
        logger.info(f"Agent registered (id: {result.agent_id or '-'}) {result.message}")
    except AgentError as e:
        logger.error(f"Registration failed: {e}")
        node.close()
        sys.exit(1)

    if node.heartbeat.send_heartbeat():
        logger.info("Single heartbeat sent successfully")
    else:
        logger.warning(f"Single heartbeat failed: {node.heartbeat.last_error}")

    if config.solve_interval:
        outcome = node.solve_challenge()
        logger.info(f"Challenge attempt: {outcome.status}")

    node.close()
    logger.info("Agent complete (--once mode)")


@cli.command()
@agent_options
def status(config: AgentConfig):
    """Show agent and network status."""
    node = _build_node(config)

    try:
        agent = node.gateway.get_status(node.address)
        stats = node.gateway.get_network_stats()
    except AgentError as e:
        console.print(f"[red]Failed to get status: {e}[/red]")
        sys.exit(1)
    finally:
        node.close()

    table = Table(Column("Agent"), Column("Value"), box=box.SIMPLE)
    table.add_row("Address", agent.address)
    table.add_row("Registered", "✅" if agent.registered else "❌")
    table.add_row("Uptime (s)", str(agent.uptime))
    table.add_row("Last heartbeat", unix_to_iso(agent.last_heartbeat) or "-")
    table.add_row("Challenges solved", str(agent.challenges_solved))
    table.add_row("Pending reward", agent.pending_reward)
    console.print(table)

    table = Table(Column("Network"), Column("Value"), box=box.SIMPLE)
    table.add_row("Network", config.network)
    table.add_row("Agents (active / total)", f"{stats.active_agents} / {stats.total_agents}")
    table.add_row("Challenges solved", str(stats.total_challenges_solved))
    table.add_row("Rewards distributed", stats.total_rewards_distributed)
    table.add_row("Block", str(stats.current_block_number))
    table.add_row("Hashrate", stats.network_hashrate)
    console.print(table)


@cli.command()
@agent_options
def solve(config: AgentConfig):
    """Fetch, solve and submit the current challenge."""
    node = _build_node(config)
    try:
        outcome = node.solve_challenge()
    finally:
        node.close()

    console.print_json(json.dumps(outcome.to_dict()))
    if outcome.status == "error":
        sys.exit(1)


@cli.command()
@agent_options
def reward(config: AgentConfig):
    """Show pending and claimed rewards and the wallet balance."""
    node = _build_node(config)
    try:
        info = node.reward()
    except AgentError as e:
        console.print(f"[red]Failed to get reward: {e}[/red]")
        sys.exit(1)
    finally:
        node.close()

    table = Table(Column("Reward"), Column("Value"), box=box.SIMPLE)
    table.add_row("Address", info["address"])
    table.add_row("Pending", info["pending"])
    table.add_row("Claimed", info["claimed"])
    table.add_row("Total", info["total"])
    table.add_row("Balance (wei)", info["balanceWei"])
    console.print(table)


@cli.command()
@agent_options
def claim(config: AgentConfig):
    """Claim pending rewards."""
    node = _build_node(config)
    try:
        result = node.claim_reward()
    finally:
        node.close()

    console.print_json(json.dumps(result))
    if result["status"] == "error":
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
