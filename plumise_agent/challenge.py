"""Solve-and-submit workflow.

fetch challenge -> check expiry -> search nonce -> sign -> submit.
Every path ends in a ChallengeOutcome; network and signing failures are
reported as status "error" rather than raised.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .exceptions import AgentError
from .solver import solve_challenge
from .utils import unix_to_iso

logger = logging.getLogger("plumise-agent")

ACCEPTED = "accepted"
REJECTED = "rejected"
EXPIRED = "expired"
NO_CHALLENGE = "no_challenge"
EXHAUSTED = "exhausted"
ERROR = "error"


@dataclass
class ChallengeOutcome:
    """Terminal state of one solve-and-submit attempt."""

    status: str
    challenge_id: Optional[str] = None
    difficulty: Optional[int] = None
    nonce: Optional[str] = None
    reward: Optional[str] = None
    message: Optional[str] = None
    expired_at: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ACCEPTED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "status": self.status,
            "challengeId": self.challenge_id,
            "difficulty": self.difficulty,
            "nonce": self.nonce,
            "reward": self.reward,
            "message": self.message,
            "expiredAt": self.expired_at,
        }
        return {k: v for k, v in data.items() if v is not None}


def solve_and_submit(
    gateway,
    signer,
    solver: Callable[[str, int], Optional[str]] = solve_challenge,
    clock: Callable[[], float] = time.time,
) -> ChallengeOutcome:
    """Fetch the current challenge, solve it and submit the solution.

    Args:
        gateway: Object with fetch_challenge() and submit_solution()
        signer: Object with `address` and sign(message)
        solver: Called as solver(data, difficulty)
        clock: Returns the current unix time in seconds

    Returns:
        ChallengeOutcome describing how the attempt ended
    """
    try:
        address = signer.address
        challenge = gateway.fetch_challenge(address)
    except AgentError as e:
        logger.warning(f"Challenge fetch failed: {e}")
        return ChallengeOutcome(status=ERROR, message=f"Challenge error: {e}")

    if challenge is None or not challenge.id:
        logger.info("No challenge currently available")
        return ChallengeOutcome(
            status=NO_CHALLENGE,
            message="No challenge currently available. Try again later.",
        )

    if challenge.is_expired(clock()):
        logger.info(f"Challenge {challenge.id} expired at {challenge.expires_at}, not solving")
        return ChallengeOutcome(
            status=EXPIRED,
            challenge_id=challenge.id,
            expired_at=unix_to_iso(challenge.expires_at),
        )

    if challenge.difficulty < 0:
        logger.warning(f"Challenge {challenge.id} has invalid difficulty {challenge.difficulty}")
        return ChallengeOutcome(
            status=ERROR,
            challenge_id=challenge.id,
            difficulty=challenge.difficulty,
            message=f"Challenge error: invalid difficulty {challenge.difficulty}",
        )

    logger.info(f"Solving challenge {challenge.id} (difficulty {challenge.difficulty})")
    started = time.monotonic()
    nonce = solver(challenge.data, challenge.difficulty)
    elapsed = time.monotonic() - started

    if nonce is None:
        logger.warning(f"Challenge {challenge.id}: iteration budget exhausted after {elapsed:.1f}s")
        return ChallengeOutcome(
            status=EXHAUSTED,
            challenge_id=challenge.id,
            difficulty=challenge.difficulty,
            message="Could not find solution within iteration limit.",
        )

    logger.info(f"Challenge {challenge.id}: found nonce {nonce} in {elapsed:.1f}s")

    try:
        signature = signer.sign(f"solution:{address}:{challenge.id}:{nonce}")
        result = gateway.submit_solution(address, challenge.id, nonce, signature)
    except AgentError as e:
        logger.warning(f"Solution submit failed: {e}")
        return ChallengeOutcome(
            status=ERROR,
            challenge_id=challenge.id,
            difficulty=challenge.difficulty,
            nonce=nonce,
            message=f"Challenge error: {e}",
        )

    status = ACCEPTED if result.accepted else REJECTED
    logger.info(f"Challenge {challenge.id}: solution {status} (reward {result.reward})")
    return ChallengeOutcome(
        status=status,
        challenge_id=challenge.id,
        difficulty=challenge.difficulty,
        nonce=nonce,
        reward=result.reward,
        message=result.message,
    )
