class PortKillerError(Exception):
    """Fatal error for the whole invocation, reported at the CLI boundary."""


class ParseError(PortKillerError, ValueError):
    def __init__(self, message: str, token: str | None = None):
        super().__init__(message)
        self.token = token


class PresetNotFoundError(ParseError):
    def __init__(self, name: str):
        super().__init__(f'Preset "{name}" not found', token=name)
        self.name = name


class ConfigError(PortKillerError):
    pass
