"""
Merge status polling.

A deferred merge is tracked by an explicit ``MergePoll`` state object
(deadline, interval, next check). ``MergeStatusPoller.step`` performs one
timer tick, so an external scheduler can drive the poll; ``wait`` drives it
on the current event loop.
"""
import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from ...api import UploadAPIClient, UploadOptions
from ...api.config import POLL_INTERVAL, POLL_TIMEOUT
from ...exceptions import MergeFailedError, MergeTimeoutError, ProtocolError
from ...logging import get_logger


PENDING_STATUSES = ('processing', 'merging')
FAILED_STATUSES = ('error', 'timeout')
SUCCESS_STATUS = 'success'


class PollState(str, Enum):
    """States of a merge poll."""
    WAITING = 'waiting'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    TIMED_OUT = 'timed_out'


@dataclass
class MergePoll:
    """
    Polling state of one deferred merge.

    Attributes:
        upload_id: Session being merged
        deadline: Clock value after which the poll times out
        interval: Seconds between checks
        next_check: Clock value of the next due check
        attempts: Status checks performed
        state: Current poll state
        result: Result payload once succeeded
        message: Server message once failed
    """
    upload_id: str
    deadline: float
    interval: float
    next_check: float
    attempts: int = 0
    state: PollState = PollState.WAITING
    result: Any = None
    message: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.state is not PollState.WAITING

    def expired(self, now: float) -> bool:
        return now >= self.deadline

    def delay(self, now: float) -> float:
        """Seconds to sleep before the next check is due."""
        return max(0.0, min(self.next_check, self.deadline) - now)

    def apply(self, reply: Dict[str, Any], now: float) -> PollState:
        """
        Apply a status reply.

        Raises:
            ProtocolError: If the reply has no or an unknown ``status``
        """
        self.attempts += 1
        self.next_check = now + self.interval
        status = reply.get('status')
        if status == SUCCESS_STATUS:
            self.state = PollState.SUCCEEDED
            self.result = reply.get('result', reply)
        elif status in FAILED_STATUSES:
            self.state = PollState.FAILED
            self.message = reply.get('message') or reply.get('error') or status
        elif status not in PENDING_STATUSES:
            raise ProtocolError(f"Unexpected merge status: {status!r}", stage='status')
        return self.state


class MergeStatusPoller:
    """
    Polls merge status until a terminal status or the wait budget runs out.

    Clock and sleep are injectable so tests can run on an accelerated clock.
    """

    def __init__(
        self,
        api: UploadAPIClient,
        interval: float = POLL_INTERVAL,
        timeout: float = POLL_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize poller.

        Args:
            api: Upload API client
            interval: Seconds between checks
            timeout: Overall wait budget in seconds
            clock: Monotonic clock
            sleep: Coroutine function used to wait
        """
        self._api = api
        self._interval = interval
        self._timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._logger = get_logger('chunkdrop.upload.poll')

    def start(self, upload_id: str) -> MergePoll:
        """Create the poll state for a session; first check is due now."""
        now = self._clock()
        return MergePoll(
            upload_id=upload_id,
            deadline=now + self._timeout,
            interval=self._interval,
            next_check=now
        )

    async def step(self, poll: MergePoll, options: Optional[UploadOptions] = None) -> PollState:
        """
        Perform one timer tick.

        Checks status if a check is due; marks the poll timed out once the
        deadline has passed.
        """
        now = self._clock()
        if poll.done:
            return poll.state
        if poll.expired(now):
            poll.state = PollState.TIMED_OUT
            return poll.state
        if now < poll.next_check:
            return poll.state
        reply = await self._api.check_status(poll.upload_id, options)
        state = poll.apply(reply, self._clock())
        self._logger.debug(f"Merge {poll.upload_id}: check {poll.attempts} -> {reply.get('status')}")
        return state

    async def wait(self, upload_id: str, options: Optional[UploadOptions] = None) -> Any:
        """
        Wait for a deferred merge to finish.

        Returns:
            Result payload of the merge

        Raises:
            MergeFailedError: Server reported error/timeout
            MergeTimeoutError: Wait budget exhausted
            ProtocolError: Malformed status reply
            TransportError: Status call failed
        """
        poll = self.start(upload_id)
        self._logger.info(f"Waiting for merge {upload_id} (every {self._interval:.0f}s, up to {self._timeout:.0f}s)")

        while True:
            state = await self.step(poll, options)
            if state is PollState.SUCCEEDED:
                self._logger.info(f"Merge {upload_id} finished after {poll.attempts} checks")
                return poll.result
            if state is PollState.FAILED:
                raise MergeFailedError(f"Merge failed: {poll.message}", upload_id=upload_id, stage='status')
            if state is PollState.TIMED_OUT:
                raise MergeTimeoutError(
                    f"Merge timed out: no result after {self._timeout / 60:.0f} minutes",
                    upload_id=upload_id
                )
            await self._sleep(poll.delay(self._clock()))
