"""Plumise Agent - keeps an agent alive on the Plumise network and solves challenges.

Talks to a Plumise node over its agent_* JSON-RPC namespace.

Key responsibilities:
- Register the agent wallet via agent_register
- Send signed heartbeats at a fixed interval to stay active
- Fetch proof-of-work challenges, search for a nonce, and submit signed solutions
- Report agent, heartbeat and network status
"""

__version__ = "0.1.0"
