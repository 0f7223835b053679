import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .killer import confirm_message
from .models import ProcessInfo
from .resolver import PlatformResolver

logger = logging.getLogger("watcher")


class WatchState(Enum):
    RESOLVING = "resolving"
    CONFIRMING = "confirming"
    KILLING = "killing"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class PortWatcher:
    """
    Polls one port and offers to kill whatever is listening on it.

    Confirmation is asked on every hit, even when --force is in effect.
    run() returns once stop() is called or after max_cycles cycles.
    """

    def __init__(
        self,
        resolver: PlatformResolver,
        confirm: Callable[[str], bool],
        port: int,
        interval_ms: int = 1000,
        on_found: Optional[Callable[[ProcessInfo], None]] = None,
        on_killed: Optional[Callable[[ProcessInfo, bool], None]] = None,
        max_cycles: Optional[int] = None,
    ):
        self.resolver = resolver
        self.confirm = confirm
        self.port = port
        self.interval = max(interval_ms, 0) / 1000.0
        self.on_found = on_found
        self.on_killed = on_killed
        self.max_cycles = max_cycles
        self.cycles = 0
        self.state = WatchState.STOPPED
        self._cancel = threading.Event()

    def stop(self):
        self._cancel.set()

    @property
    def stopped(self) -> bool:
        return self._cancel.is_set()

    def _enter(self, state: WatchState) -> None:
        self.state = state
        logger.debug(f"watch {self.port}: {state.value}")

    def run_once(self) -> None:
        self._enter(WatchState.RESOLVING)
        process = self.resolver.resolve(self.port)
        if process is None or self.stopped:
            return
        if self.on_found:
            self.on_found(process)

        self._enter(WatchState.CONFIRMING)
        if not self.confirm(confirm_message(process)) or self.stopped:
            return

        self._enter(WatchState.KILLING)
        killed = self.resolver.terminate(process.pid)
        if not killed:
            logger.info(f"Failed to kill PID {process.pid} on port {self.port}")
        if self.on_killed:
            self.on_killed(process, killed)

    def run(self) -> None:
        logger.info(f"Watching port {self.port} every {self.interval:.3f}s")
        try:
            while not self.stopped:
                self.run_once()
                self.cycles += 1
                if self.max_cycles is not None and self.cycles >= self.max_cycles:
                    break
                if self.stopped:
                    break
                self._enter(WatchState.SLEEPING)
                self._cancel.wait(self.interval)
        finally:
            self._enter(WatchState.STOPPED)
