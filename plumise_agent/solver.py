"""Challenge solver.

Finds the lowest nonce such that keccak256(data + nonce_hex) has at least
`difficulty` leading zero bits. Nonces are tried in order 0, 1, 2, ... and
rendered as 8 zero-padded lowercase hex digits.

The search is synchronous and CPU bound. Run it on its own thread if
anything else must keep running meanwhile.
"""

import logging
import re
from typing import Callable, Optional

from eth_utils import keccak

logger = logging.getLogger("plumise-agent")

MAX_ITERATIONS = 1_000_000
NONCE_WIDTH = 8

_HEX_LITERAL = re.compile(r"^0x[0-9a-fA-F]*$")


def to_bytes(value: str) -> bytes:
    """Encode a hash input string.

    A strict 0x-prefixed hex literal is decoded as hex (odd lengths are
    left-padded with a zero nibble); anything else is UTF-8 encoded.
    """
    if _HEX_LITERAL.match(value):
        digits = value[2:]
        if len(digits) % 2:
            digits = "0" + digits
        return bytes.fromhex(digits)
    return value.encode("utf-8")


def keccak_hex(value: str) -> str:
    """keccak256 of `value` as a 0x-prefixed lowercase hex string."""
    return "0x" + keccak(to_bytes(value)).hex()


def format_nonce(nonce: int) -> str:
    return f"{nonce:0{NONCE_WIDTH}x}"


def has_leading_zero_bits(hash_hex: str, bits: int) -> bool:
    """Check that a hex hash starts with at least `bits` zero bits.

    Args:
        hash_hex: Hash as hex, with or without 0x prefix
        bits: Required leading zero bits

    Returns:
        True if satisfied. A requirement longer than the hash always fails.
    """
    hex_str = hash_hex[2:] if hash_hex.startswith("0x") else hash_hex
    full_nibbles, remainder = divmod(bits, 4)

    if full_nibbles > len(hex_str):
        return False

    for ch in hex_str[:full_nibbles]:
        if ch != "0":
            return False

    if remainder > 0:
        if full_nibbles >= len(hex_str):
            return False
        value = int(hex_str[full_nibbles], 16)
        mask = (0xF << (4 - remainder)) & 0xF
        if value & mask:
            return False

    return True


def solve_challenge(
    data: str,
    difficulty: int,
    max_iterations: int = MAX_ITERATIONS,
    hash_fn: Callable[[str], str] = keccak_hex,
) -> Optional[str]:
    """Search for a nonce satisfying the challenge difficulty.

    Args:
        data: Challenge data, hashed with the nonce appended
        difficulty: Required leading zero bits (>= 0)
        max_iterations: Candidate budget
        hash_fn: Maps the input string to a hex digest

    Returns:
        The first winning nonce as 8 hex digits, or None if the budget ran out
    """
    if difficulty < 0:
        raise ValueError(f"difficulty must be >= 0, got: {difficulty}")

    # Unsatisfiable difficulties still spend the full budget
    for nonce in range(max_iterations):
        candidate = format_nonce(nonce)
        if has_leading_zero_bits(hash_fn(data + candidate), difficulty):
            logger.debug(f"Found nonce {candidate} for difficulty {difficulty} after {nonce + 1} attempts")
            return candidate

    logger.debug(f"No nonce found for difficulty {difficulty} in {max_iterations} attempts")
    return None
