"""
Readiness gate for frame rotation priming.

NOT_PRIMED -> PRIMING -> READY. Each interval request gets a version token;
only the completion of the latest request may open the gate. Earlier in-flight
primes are not cancelled, their completions are discarded on arrival.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Union

from ..exceptions import FrameResolutionFailed, StaleReadiness
from ..spice.frame_rotation import FrameRotationProvider
from ..utils.time_utils import TimeInterval

logger = logging.getLogger(__name__)


class GateState(Enum):
    NOT_PRIMED = "not_primed"
    PRIMING = "priming"
    READY = "ready"


class ReadinessGate:
    """Barrier that opens once the provider is primed for the latest interval."""

    def __init__(self, provider: FrameRotationProvider):
        self.provider = provider
        self.state = GateState.NOT_PRIMED
        self.interval: Optional[TimeInterval] = None
        self.version = 0
        self.last_error: Optional[Exception] = None
        self._ready_event = asyncio.Event()
        self._listeners: List[Callable[[TimeInterval], None]] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def is_ready(self) -> bool:
        return self.state is GateState.READY

    def is_ready_for(self, target: Union[float, TimeInterval]) -> bool:
        """True if READY and the primed interval covers target."""
        if not self.is_ready or self.interval is None:
            return False
        if isinstance(target, TimeInterval):
            return self.interval.covers(target)
        return self.interval.contains(target)

    def add_ready_listener(self, callback: Callable[[TimeInterval], None]) -> None:
        """Register a callback invoked on every transition to READY."""
        self._listeners.append(callback)

    def request(self, interval: TimeInterval) -> int:
        """
        Start priming for interval and return its version token.

        Must be called from a running event loop. Re-requesting the interval
        that is already priming or ready is a no-op.
        """
        if interval == self.interval and self.state is not GateState.NOT_PRIMED:
            logger.debug(f"Interval already {self.state.value}, keeping version {self.version}")
            return self.version

        self.version += 1
        self.interval = interval
        self.state = GateState.PRIMING
        self.last_error = None
        # Wake waiters on the superseded request so they re-wait on this one
        self._ready_event.set()
        self._ready_event = asyncio.Event()
        logger.info(f"Priming frame rotations for [{interval.start}, {interval.stop}] (version {self.version})")

        self._task = asyncio.ensure_future(self._prime(self.version, interval))
        return self.version

    async def wait_ready(self) -> None:
        """
        Suspend until the latest request has completed priming.

        Raises:
            FrameResolutionFailed: If nothing has been requested or the latest
                request failed to prime
        """
        while not self.is_ready:
            if self.state is GateState.NOT_PRIMED:
                if self.last_error is not None:
                    raise FrameResolutionFailed(
                        f"Priming failed for version {self.version}: {self.last_error}"
                    ) from self.last_error
                raise FrameResolutionFailed("No priming interval has been requested")
            event = self._ready_event
            await event.wait()

    async def _prime(self, version: int, interval: TimeInterval) -> None:
        try:
            await self.provider.prime(interval)
        except Exception as e:
            if version != self.version:
                logger.debug(f"Ignoring failure of superseded prime version {version}: {e}")
                return
            logger.error(f"Priming failed for version {version}: {e}")
            self.state = GateState.NOT_PRIMED
            self.last_error = e
            # Waiters observe NOT_PRIMED and raise
            self._ready_event.set()
            return

        try:
            self._complete(version, interval)
        except StaleReadiness as e:
            logger.debug(str(e))

    def _complete(self, version: int, interval: TimeInterval) -> None:
        if version != self.version:
            raise StaleReadiness(
                f"Discarding prime completion version {version}, latest is {self.version}"
            )

        self.state = GateState.READY
        self._ready_event.set()
        logger.info(f"Readiness gate open (version {version})")
        for callback in list(self._listeners):
            callback(interval)
