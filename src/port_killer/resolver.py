import logging
import os
import re
import signal
import sys
from abc import ABC, abstractmethod
from typing import Optional

import psutil

from .models import ProcessInfo
from .utils.common import run_command

logger = logging.getLogger("resolver")

# lsof -i -P -n: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
LSOF_LISTEN_RE = re.compile(r"\s+(\d+)\s+.*:(\d+)\s+\(LISTEN\)")
# netstat -ano: Proto Local-Address Foreign-Address State PID
NETSTAT_LISTEN_RE = re.compile(r":(\d+)\s+.*LISTENING\s+(\d+)")


def parse_lsof_pid(output: str) -> Optional[int]:
    for line in output.splitlines():
        line = line.strip()
        if line.isdigit():
            return int(line)
    return None


def parse_lsof_listeners(output: str) -> list[tuple[int, int]]:
    """Return (pid, port) pairs in table order, dropping repeated pairs."""
    pairs: dict[tuple[int, int], None] = {}
    for line in output.splitlines():
        m = LSOF_LISTEN_RE.search(line)
        if m:
            pairs[(int(m.group(1)), int(m.group(2)))] = None
    return list(pairs)


def parse_netstat_pid(output: str, port: int) -> Optional[int]:
    suffix = f":{port}"
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 5 or "LISTENING" not in parts:
            continue
        if not parts[1].endswith(suffix):
            continue
        if parts[-1].isdigit():
            return int(parts[-1])
    return None


def parse_netstat_listeners(output: str) -> list[tuple[int, int]]:
    pairs: dict[tuple[int, int], None] = {}
    for line in output.splitlines():
        m = NETSTAT_LISTEN_RE.search(line)
        if m:
            pairs[(int(m.group(2)), int(m.group(1)))] = None
    return list(pairs)


def parse_tasklist_name(output: str) -> Optional[str]:
    text = output.strip()
    # "INFO: No tasks are running which match the specified criteria."
    if not text or text.startswith("INFO:"):
        return None
    return text.split()[0]


def parse_wmic_command(output: str) -> str:
    for line in output.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key == "CommandLine":
            return value.strip()
    return ""


def lookup_user(pid: int) -> Optional[str]:
    try:
        return psutil.Process(pid).username()
    except (psutil.Error, OSError) as e:
        logger.debug(f"owner of PID {pid} unavailable: {e}")
        return None


class PlatformResolver(ABC):
    """
    Maps a port to the process listening on it. None of the methods raise on
    OS tool failures: a failed query is reported as absent, a failed kill as
    False, with the cause in the debug log.
    """

    @abstractmethod
    def find_pid(self, port: int) -> Optional[int]:
        pass

    @abstractmethod
    def process_name(self, pid: int) -> Optional[str]:
        pass

    @abstractmethod
    def process_command(self, pid: int) -> str:
        pass

    @abstractmethod
    def list_listeners(self) -> list[tuple[int, int]]:
        pass

    @abstractmethod
    def terminate(self, pid: int) -> bool:
        pass

    def describe(self, pid: int, port: int) -> Optional[ProcessInfo]:
        name = self.process_name(pid)
        if name is None:
            return None
        return ProcessInfo(
            pid=pid,
            name=name,
            port=port,
            user=lookup_user(pid),
            command=self.process_command(pid),
        )

    def resolve(self, port: int) -> Optional[ProcessInfo]:
        pid = self.find_pid(port)
        if pid is None:
            logger.debug(f"port {port}: no listening process")
            return None
        info = self.describe(pid, port)
        if info is None:
            logger.debug(f"port {port}: PID {pid} vanished before it could be described")
        return info

    def resolve_all(self) -> list[ProcessInfo]:
        processes = []
        for pid, port in self.list_listeners():
            info = self.describe(pid, port)
            if info is not None:
                processes.append(info)
        return processes


class PosixResolver(PlatformResolver):
    def find_pid(self, port: int) -> Optional[int]:
        result = run_command(["lsof", "-i", f":{port}", "-t", "-sTCP:LISTEN"])
        return parse_lsof_pid(result.stdout) if result.ok else None

    def process_name(self, pid: int) -> Optional[str]:
        result = run_command(["ps", "-p", str(pid), "-o", "comm="])
        name = result.stdout.strip()
        return name if result.ok and name else None

    def process_command(self, pid: int) -> str:
        result = run_command(["ps", "-p", str(pid), "-o", "command="])
        return result.stdout.strip() if result.ok else ""

    def list_listeners(self) -> list[tuple[int, int]]:
        result = run_command(["lsof", "-i", "-P", "-n"])
        if not result.ok:
            return []
        return parse_lsof_listeners(result.stdout)

    def terminate(self, pid: int) -> bool:
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug(f"terminate: PID {pid} does not exist")
            return False
        except PermissionError:
            logger.debug(f"terminate: not permitted to signal PID {pid}")
            return False
        except OSError as e:
            logger.debug(f"terminate: failed to signal PID {pid}: {e}")
            return False
        return True


class WindowsResolver(PlatformResolver):
    def find_pid(self, port: int) -> Optional[int]:
        result = run_command(["netstat", "-ano"])
        return parse_netstat_pid(result.stdout, port) if result.ok else None

    def process_name(self, pid: int) -> Optional[str]:
        result = run_command(["tasklist", "/FI", f"PID eq {pid}", "/NH"])
        return parse_tasklist_name(result.stdout) if result.ok else None

    def process_command(self, pid: int) -> str:
        result = run_command(
            ["wmic", "process", "where", f"ProcessId={pid}", "get", "CommandLine", "/value"]
        )
        return parse_wmic_command(result.stdout) if result.ok else ""

    def list_listeners(self) -> list[tuple[int, int]]:
        result = run_command(["netstat", "-ano"])
        if not result.ok:
            return []
        return parse_netstat_listeners(result.stdout)

    def terminate(self, pid: int) -> bool:
        result = run_command(["taskkill", "/F", "/PID", str(pid)])
        return result.returncode == 0


def get_resolver(platform: str = sys.platform) -> PlatformResolver:
    if platform == "win32":
        return WindowsResolver()
    return PosixResolver()
