"""
Upload Status Poller
Bounded polling of a CallIQ call until processing finishes.

States: pending -> polling(attempt N) -> done | timeout
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from voiceai_console.core.errors import PollingTimeoutError
from voiceai_console.domain.models.calliq import CallIQCall, UploadProgress

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_POLL_INTERVAL = 2.0


class PollState(str, Enum):
    PENDING = "pending"
    POLLING = "polling"
    DONE = "done"
    TIMEOUT = "timeout"


class UploadPoller:
    """
    Poll a call until it reaches a terminal status.

    Args:
        get_call: Coroutine function fetching the call by id
        max_attempts: Polls allowed after the first one before giving up
        interval: Seconds between polls
        sleep: Injectable sleep coroutine (asyncio.sleep by default)
    """

    def __init__(
        self,
        get_call: Callable[[str], Awaitable[CallIQCall]],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self._get_call = get_call
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep
        self.state = PollState.PENDING
        self.attempt = 0

    async def poll(
        self,
        call_id: str,
        on_update: Optional[Callable[[UploadProgress], None]] = None
    ) -> CallIQCall:
        """
        Poll until the call is completed or failed.

        Every fetched call is reported through on_update. Fetch errors
        propagate immediately.

        Raises:
            PollingTimeoutError: Attempt budget exhausted
        """
        self.state = PollState.POLLING
        self.attempt = 0

        while True:
            call = await self._get_call(call_id)
            if on_update:
                on_update(UploadProgress.from_call(call))

            if call.status.is_terminal:
                self.state = PollState.DONE
                logger.info(f"Call {call_id} finished processing with status {call.status.value}")
                return call

            if self.attempt >= self.max_attempts:
                self.state = PollState.TIMEOUT
                logger.warning(f"Call {call_id} still {call.status.value} after {self.attempt} polls")
                raise PollingTimeoutError(attempts=self.attempt)

            self.attempt += 1
            await self._sleep(self.interval)
