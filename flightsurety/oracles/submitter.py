from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING, Deque, Optional

import bittensor as bt

from flightsurety.core.models import OracleIdentity, StatusCode, StatusRequest, StatusVote
from flightsurety.exceptions import SubmissionFailed
from flightsurety.oracles.policy import RandomStatusPolicy, StatusPolicy

if TYPE_CHECKING:
    from flightsurety.ledger.base import Ledger

DEFAULT_SUBMIT_TIMEOUT_S = 30.0


class ResponseSubmitter:
    """
    Pick a status for one oracle and send it to the ledger.

    Each call is isolated: any failure (policy, revert, timeout, transport) is logged
    with enough context to replay the vote by hand and then dropped. There is
    no retry.
    """

    def __init__(
        self,
        ledger: "Ledger",
        policy: Optional[StatusPolicy] = None,
        *,
        timeout_s: float = DEFAULT_SUBMIT_TIMEOUT_S,
    ):
        self.ledger = ledger
        self.policy: StatusPolicy = policy or RandomStatusPolicy()
        self.timeout_s = timeout_s
        self.submitted = 0
        self.failed = 0
        self.recent_failures: Deque[SubmissionFailed] = deque(maxlen=256)

    async def submit(self, oracle: OracleIdentity, request: StatusRequest) -> Optional[StatusVote]:
        status_code = StatusCode.UNKNOWN
        try:
            status_code = self.policy.choose(oracle, request)
            await asyncio.wait_for(
                self.ledger.submit_vote(
                    index=request.index,
                    airline=request.airline,
                    flight=request.flight,
                    timestamp=request.timestamp,
                    status_code=status_code,
                    oracle=oracle,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            failure = SubmissionFailed(StatusVote(oracle=oracle, request=request, status_code=status_code), exc)
            self.failed += 1
            self.recent_failures.append(failure)
            if failure.tx_hash:
                bt.logging.warning(f"Oracle vote sent but not confirmed: {failure}")
            else:
                bt.logging.warning(f"Oracle vote not submitted: {failure}")
            return None

        vote = StatusVote(oracle=oracle, request=request, status_code=status_code)
        self.submitted += 1
        bt.logging.debug(
            f"Oracle {oracle} voted {vote.status_code.name} for {request.flight}@{request.timestamp} (index {request.index})"
        )
        return vote
