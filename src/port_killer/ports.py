from .errors import ParseError


def _to_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_ports(raw: str) -> list[int]:
    """
    Parse "3000", "3000,3001", "3000-3010" or any comma separated mix into an
    ordered list of unique ports. Range bounds are inclusive; ports are not
    checked against 1-65535.
    """
    ports: dict[int, None] = {}
    for part in raw.split(","):
        if "-" in part:
            start_text, _, end_text = part.partition("-")
            start, end = _to_int(start_text), _to_int(end_text)
            if start is None or end is None or start > end:
                raise ParseError(f"Invalid port range: {part}", token=part)
            for port in range(start, end + 1):
                ports[port] = None
        else:
            port = _to_int(part)
            if port is None:
                raise ParseError(f"Invalid port number: {part}", token=part)
            ports[port] = None
    return list(ports)


def parse_port(raw: str) -> int:
    port = _to_int(raw)
    if port is None:
        raise ParseError("Invalid port number", token=raw)
    return port
