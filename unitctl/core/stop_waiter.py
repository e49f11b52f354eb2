"""State machine deciding when a stopping unit has finished stopping."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..models.service import ActiveState
from ..utils.constants import STOP_FAST_ATTEMPTS, STOP_FAST_DELAY, STOP_POLL_INTERVAL

logger = logging.getLogger(__name__)

# States in which a unit has not finished stopping yet
STILL_STOPPING = frozenset({ActiveState.ACTIVE, ActiveState.DEACTIVATING})


class StopPhase(Enum):
    """Phases of waiting for a unit to stop."""

    REQUESTED = "requested"
    POLLING_FAST = "polling-fast"
    POLLING_SLOW = "polling-slow"
    CONVERGED = "converged"
    TIMED_OUT = "timed-out"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StopPhase.CONVERGED, StopPhase.TIMED_OUT, StopPhase.FAILED)


@dataclass(frozen=True)
class StopPolicy:
    """Polling cadence used while waiting for a unit to stop.

    Attributes:
        fast_attempts: Polls made before telling the user we are waiting
        fast_delay: Seconds between fast polls
        poll_interval: Seconds between polls after that, until the deadline
    """

    fast_attempts: int = STOP_FAST_ATTEMPTS
    fast_delay: float = STOP_FAST_DELAY
    poll_interval: float = STOP_POLL_INTERVAL

    def __post_init__(self):
        if self.fast_attempts < 1:
            raise ValueError("fast_attempts must be at least 1")
        if self.fast_delay < 0 or self.poll_interval < 0:
            raise ValueError("Polling delays cannot be negative")


class StopWaiter:
    """Tracks one stop request from issue to a terminal phase.

    The caller polls the unit's ActiveState and feeds each answer to
    observe(); the waiter moves through

        REQUESTED -> POLLING_FAST -> POLLING_SLOW -> CONVERGED | TIMED_OUT

    and into FAILED if the caller reports a query failure. The notify callback
    is invoked once, on entering POLLING_SLOW.
    """

    def __init__(
        self,
        service_name: str,
        timeout: float,
        policy: Optional[StopPolicy] = None,
        notify: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the waiter.

        Args:
            service_name: Unit being stopped, used in the progress message
            timeout: Seconds allowed for the unit to stop
            policy: Polling cadence, defaults to StopPolicy()
            notify: Callback receiving the progress message
            clock: Monotonic clock returning seconds
        """
        self.service_name = service_name
        self.timeout = timeout
        self.policy = policy or StopPolicy()
        self._notify = notify
        self._clock = clock

        self.phase = StopPhase.REQUESTED
        self.attempts = 0
        self.deadline: Optional[float] = None

    @property
    def message(self) -> str:
        return f"Waiting for {self.service_name} to stop."

    @property
    def delay(self) -> float:
        """Seconds to sleep before the next poll in the current phase."""
        if self.phase is StopPhase.POLLING_FAST:
            return self.policy.fast_delay
        return self.policy.poll_interval

    def begin(self) -> StopPhase:
        """Record that the stop command was accepted and polling starts."""
        self._expect(StopPhase.REQUESTED)
        self.deadline = self._clock() + self.timeout
        self.phase = StopPhase.POLLING_FAST
        return self.phase

    def observe(self, state: ActiveState) -> StopPhase:
        """Advance on one polled ActiveState.

        Args:
            state: ActiveState reported by the latest poll

        Returns:
            The phase after this observation
        """
        self._expect(StopPhase.POLLING_FAST, StopPhase.POLLING_SLOW)
        self.attempts += 1

        if state not in STILL_STOPPING:
            logger.debug(f"{self.service_name} reached {state.value} after {self.attempts} polls")
            self.phase = StopPhase.CONVERGED
            return self.phase

        if self.phase is StopPhase.POLLING_FAST:
            if self.attempts < self.policy.fast_attempts:
                return self.phase
            self.phase = StopPhase.POLLING_SLOW
            if self._notify is not None:
                self._notify(self.message)

        if self._clock() >= self.deadline:
            self.phase = StopPhase.TIMED_OUT
        return self.phase

    def fail(self) -> StopPhase:
        """Record that polling failed."""
        self.phase = StopPhase.FAILED
        return self.phase

    def _expect(self, *phases: StopPhase):
        if self.phase not in phases:
            raise RuntimeError(f"Stop of {self.service_name} is {self.phase.value}, expected "
                               f"{' or '.join(phase.value for phase in phases)}")
