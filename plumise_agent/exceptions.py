"""Exceptions raised by the Plumise agent."""

from typing import Optional


class AgentError(Exception):
    """Base class for agent errors."""


class RpcError(AgentError):
    """A JSON-RPC call failed in transport or was rejected by the node."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class SigningError(AgentError):
    """The wallet could not produce a signature."""
