import logging
from typing import Callable, Iterable, Optional

from .models import (
    CANCELLED_BY_USER,
    KILL_FAILED,
    NO_PROCESS_FOUND,
    KillResult,
    OperationOptions,
    PortState,
    ProcessInfo,
)
from .resolver import PlatformResolver

logger = logging.getLogger("killer")


def confirm_message(process: ProcessInfo) -> str:
    return f"Kill process {process.pid} ({process.name}) on port {process.port}?"


class BatchKiller:
    """
    Resolves and kills ports one at a time. Every port ends in exactly one
    KillResult, so a failure on one port never stops the rest of the batch.
    """

    def __init__(
        self,
        resolver: PlatformResolver,
        confirm: Callable[[str], bool],
        on_info: Optional[Callable[[ProcessInfo], None]] = None,
        on_progress: Optional[Callable[[int], None]] = None,
    ):
        self.resolver = resolver
        self.confirm = confirm
        self.on_info = on_info
        self.on_progress = on_progress

    def _enter(self, port: int, state: PortState) -> None:
        logger.debug(f"port {port}: {state.value}")

    def execute(self, ports: Iterable[int], options: OperationOptions) -> list[KillResult]:
        return [self.kill_port(port, options) for port in ports]

    def kill_port(self, port: int, options: OperationOptions) -> KillResult:
        self._enter(port, PortState.PENDING)
        if self.on_progress:
            self.on_progress(port)

        process = self.resolver.resolve(port)
        if process is None:
            self._enter(port, PortState.NOT_FOUND)
            return KillResult(success=False, port=port, error=NO_PROCESS_FOUND)
        self._enter(port, PortState.RESOLVED)

        if options.info and self.on_info:
            self.on_info(process)

        if options.dry_run:
            self._enter(port, PortState.DRY_RUN_REPORTED)
            return KillResult(success=True, port=port, process=process)

        if not options.force:
            self._enter(port, PortState.CONFIRM_PENDING)
            if not self.confirm(confirm_message(process)):
                self._enter(port, PortState.DECLINED)
                return KillResult(success=False, port=port, process=process, error=CANCELLED_BY_USER)
            self._enter(port, PortState.CONFIRMED)

        if self.resolver.terminate(process.pid):
            self._enter(port, PortState.KILLED)
            return KillResult(success=True, port=port, process=process)

        self._enter(port, PortState.KILL_FAILED)
        logger.info(f"Failed to kill PID {process.pid} on port {port}")
        return KillResult(success=False, port=port, process=process, error=KILL_FAILED)
