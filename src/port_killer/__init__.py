__version__ = "1.0.0"

from .killer import BatchKiller
from .models import KillResult, OperationOptions, ProcessInfo
from .ports import parse_port, parse_ports
from .presets import PresetStore
from .resolver import PlatformResolver, get_resolver
from .watcher import PortWatcher

__all__ = [
    "BatchKiller",
    "KillResult",
    "OperationOptions",
    "ProcessInfo",
    "parse_port",
    "parse_ports",
    "PresetStore",
    "PlatformResolver",
    "get_resolver",
    "PortWatcher",
]
