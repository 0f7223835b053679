import pytest

from port_killer.models import ProcessInfo
from port_killer.resolver import PlatformResolver


class StubResolver(PlatformResolver):
    """Resolver backed by a dict of port -> ProcessInfo; records every kill."""

    def __init__(self, processes=None, kill_ok=True):
        self.processes = dict(processes or {})
        self.kill_ok = kill_ok
        self.resolved = []
        self.terminated = []

    def find_pid(self, port):
        process = self.processes.get(port)
        return process.pid if process else None

    def process_name(self, pid):
        for process in self.processes.values():
            if process.pid == pid:
                return process.name
        return None

    def process_command(self, pid):
        return ""

    def list_listeners(self):
        return [(p.pid, port) for port, p in self.processes.items()]

    def resolve(self, port):
        self.resolved.append(port)
        return self.processes.get(port)

    def resolve_all(self):
        return list(self.processes.values())

    def terminate(self, pid):
        self.terminated.append(pid)
        return self.kill_ok


class ScriptedConfirm:
    def __init__(self, *answers, default=True):
        self.answers = list(answers)
        self.default = default
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)
        return self.answers.pop(0) if self.answers else self.default


@pytest.fixture
def node_process():
    return ProcessInfo(pid=123, name="node", port=3000)


@pytest.fixture
def resolver(node_process):
    return StubResolver({3000: node_process})
