import json
import logging
from typing import Iterable

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from .models import KillResult, ProcessInfo
from .utils.common import pretty

logger = logging.getLogger("display")


def dump_json(items: Iterable) -> str:
    return json.dumps([item.to_dict() for item in items], indent=2)


class Display:
    """
    Human readable output. With quiet=True nothing but errors is printed,
    and confirmation prompts still wait for an answer without showing text.
    """

    def __init__(self, quiet: bool = False, console: Console | None = None, err_console: Console | None = None):
        self.quiet = quiet
        self.console = console or Console(quiet=quiet, highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def confirm(self, message: str) -> bool:
        try:
            return Confirm.ask(escape(message), default=True, console=self.console)
        except EOFError:
            # stdin closed: nobody can answer, so nothing gets killed
            self.console.print()
            logger.warning(f"No answer to \"{message}\", treating as no")
            return False

    def status(self, message: str):
        return self.console.status(message)

    def info(self, message: str) -> None:
        self.console.print(message)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {message}")

    def json(self, items: Iterable) -> None:
        # bypass rich so the output stays machine readable
        self.console.file.write(dump_json(items) + "\n")
        self.console.file.flush()

    def process_info(self, process: ProcessInfo) -> None:
        self.console.print("\n[yellow]Process Information:[/yellow]")
        self.console.print(f"Port: {process.port}")
        self.console.print(f"PID: {process.pid}")
        self.console.print(f"Name: {escape(process.name)}")
        if process.user:
            self.console.print(f"User: {escape(process.user)}")
        if process.command:
            self.console.print(f"Command: {process.command}", markup=False)

    def found(self, process: ProcessInfo) -> None:
        self.console.print(f"[yellow]Process found on port {process.port}:[/yellow]")
        self.console.print(f"PID: {process.pid}")
        self.console.print(f"Name: {escape(process.name)}")

    def killed(self, process: ProcessInfo, success: bool) -> None:
        if success:
            self.console.print("[green]Process killed successfully[/green]")
        else:
            self.error(f"Failed to kill process {process.pid}")

    def results(self, results: list[KillResult], dry_run: bool = False) -> None:
        self.console.print("\nResults:")
        for result in results:
            if result.success and dry_run:
                p = result.process
                self.console.print(f"[cyan]• Port {result.port}: would kill {p.pid} ({escape(p.name)})[/cyan]")
            elif result.success:
                self.console.print(f"[green]✓ Port {result.port}: Process killed successfully[/green]")
            else:
                self.console.print(f"[red]✗ Port {result.port}: {result.error}[/red]")

    def process_list(self, processes: list[ProcessInfo]) -> None:
        if not processes:
            self.console.print("[yellow]No active ports found[/yellow]")
            return

        table = Table(box=box.SIMPLE_HEAVY, title="Active Ports", expand=False)
        table.add_column("Port", justify="right", style="blue", no_wrap=True)
        table.add_column("PID", justify="right", no_wrap=True)
        table.add_column("Name", no_wrap=True)
        table.add_column("User", no_wrap=True)
        table.add_column("Command")
        for p in processes:
            table.add_row(
                str(p.port),
                str(p.pid),
                escape(p.name),
                escape(p.user or ""),
                escape(pretty(p.command or "", 120)),
            )
        self.console.print(table)
