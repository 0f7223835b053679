import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError, PresetNotFoundError
from .models import OPTION_FLAGS

logger = logging.getLogger("presets")

APP_NAME = "port-killer"
CONFIG_FILENAME = "config.json"

# camelCase keys written by the original tool's config file
OPTION_ALIASES = {"dryRun": "dry_run", "list": "list_ports"}


def default_config_path(platform: str = sys.platform, env: Optional[Dict[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("PORT_KILLER_CONFIG")
    if override:
        return Path(override).expanduser()

    home = Path(env.get("HOME") or Path.home())
    if platform == "win32":
        base = Path(env["APPDATA"]) if env.get("APPDATA") else home / "AppData" / "Roaming"
    elif platform == "darwin":
        base = home / "Library" / "Preferences"
    else:
        xdg = env.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else home / ".config"
    return base / APP_NAME / CONFIG_FILENAME


class PresetStore:
    """Named port lists and default options, kept in one JSON file."""

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path).expanduser() if path else default_config_path()

    def _read(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {"presets": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.path} must contain a JSON object")
        presets = data.setdefault("presets", {})
        if not isinstance(presets, dict):
            raise ConfigError(f'"presets" in {self.path} must be an object')
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
        except OSError as e:
            raise ConfigError(f"Cannot write config file {self.path}: {e}") from e

    def presets(self) -> Dict[str, list[int]]:
        return dict(self._read()["presets"])

    def save(self, name: str, ports: list[int]) -> None:
        data = self._read()
        data["presets"][name] = list(ports)
        self._write(data)
        logger.debug(f"saved preset {name!r} to {self.path}")

    def load(self, name: str) -> list[int]:
        ports = self._read()["presets"].get(name)
        if ports is None:
            raise PresetNotFoundError(name)
        if not isinstance(ports, list) or not all(isinstance(p, int) for p in ports):
            raise ConfigError(f'Preset "{name}" in {self.path} is not a list of ports')
        # stored lists are semantically sets
        return list(dict.fromkeys(ports))

    def default_options(self) -> Dict[str, bool]:
        raw = self._read().get("defaultOptions") or {}
        if not isinstance(raw, dict):
            raise ConfigError(f'"defaultOptions" in {self.path} must be an object')
        options = {}
        for key, value in raw.items():
            name = OPTION_ALIASES.get(key, key)
            if name in OPTION_FLAGS:
                options[name] = bool(value)
            else:
                logger.debug(f"ignoring unknown default option {key!r}")
        return options
