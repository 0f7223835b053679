from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

NO_PROCESS_FOUND = "No process found"
CANCELLED_BY_USER = "Operation cancelled by user"
KILL_FAILED = "Failed to kill process"


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    name: str
    port: int
    user: Optional[str] = None
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass(frozen=True)
class KillResult:
    success: bool
    port: int
    process: Optional[ProcessInfo] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "port": self.port,
            "process": self.process.to_dict() if self.process else None,
            "error": self.error,
        }
        return _drop_none(data)


OPTION_FLAGS = ("force", "list_ports", "info", "json", "verbose", "quiet", "dry_run")


@dataclass
class OperationOptions:
    force: bool = False
    list_ports: bool = False
    info: bool = False
    json: bool = False
    verbose: bool = False
    quiet: bool = False
    dry_run: bool = False
    config: Optional[str] = None

    @classmethod
    def from_args(cls, args, defaults: Optional[Dict[str, Any]] = None) -> "OperationOptions":
        """
        Build options from parsed CLI args. Values in ``defaults`` (the config
        file's defaultOptions) apply to flags not given on the command line.
        """
        defaults = defaults or {}
        values: Dict[str, Any] = {}
        for name in OPTION_FLAGS:
            values[name] = bool(getattr(args, name, False)) or bool(defaults.get(name, False))
        values["config"] = getattr(args, "config", None)
        return cls(**values)


class PortState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    DRY_RUN_REPORTED = "dry_run_reported"
    CONFIRM_PENDING = "confirm_pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    KILLED = "killed"
    KILL_FAILED = "kill_failed"


class CommandStatus(Enum):
    OK = "ok"
    NO_MATCH = "no_match"
    MISSING_TOOL = "missing_tool"
    PERMISSION_DENIED = "permission_denied"
    FAILED = "failed"


@dataclass
class CommandResult:
    status: CommandStatus
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    argv: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK
