import logging
import subprocess
from typing import Any

from ..models import CommandResult, CommandStatus

logger = logging.getLogger("resolver")

PERMISSION_MARKERS = ("permission denied", "operation not permitted", "access is denied")


def pretty(val: Any, max_len: int = 200) -> str:
    s = val if isinstance(val, str) else repr(val)
    return s if len(s) <= max_len else s[:max_len] + f"... (len={len(s)})"


def run_command(argv: list[str]) -> CommandResult:
    """
    Run one OS command to completion. Never raises: the outcome is classified
    into a CommandStatus so callers can treat every failure as "absent".
    """
    try:
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        logger.debug(f"command not found: {argv[0]}")
        return CommandResult(CommandStatus.MISSING_TOOL, argv=argv)
    except PermissionError as e:
        logger.debug(f"cannot execute {argv[0]}: {e}")
        return CommandResult(CommandStatus.PERMISSION_DENIED, stderr=str(e), argv=argv)
    except OSError as e:
        logger.debug(f"failed to run {argv[0]}: {e}")
        return CommandResult(CommandStatus.FAILED, stderr=str(e), argv=argv)

    stdout, stderr = proc.stdout or "", proc.stderr or ""
    if proc.returncode == 0:
        status = CommandStatus.OK if stdout.strip() else CommandStatus.NO_MATCH
    elif any(m in stderr.lower() for m in PERMISSION_MARKERS):
        status = CommandStatus.PERMISSION_DENIED
    elif not stderr.strip():
        # lsof exits 1 without output when nothing matches
        status = CommandStatus.NO_MATCH
    else:
        status = CommandStatus.FAILED

    if status is not CommandStatus.OK:
        logger.debug(
            f"{' '.join(argv)} -> {status.value} (rc={proc.returncode}) {pretty(stderr.strip())}"
        )
    return CommandResult(status, stdout, stderr, proc.returncode, argv)
