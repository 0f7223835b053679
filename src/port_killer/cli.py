import argparse
import logging
import os
import sys

from . import __version__
from .core import run
from .display import Display
from .errors import PortKillerError
from .models import CANCELLED_BY_USER

COMMANDS = ("kill", "watch", "scan", "save", "load")
OPTIONS_WITH_VALUE = ("-c", "--config")

EXAMPLES = """\
Examples:
  kp 3000                    Kill process on port 3000
  kp 3000,3001               Kill processes on ports 3000 and 3001
  kp 3000-3010               Kill processes on ports 3000 through 3010
  kp scan                    Show all active ports
  kp watch 3000              Watch port 3000 and kill if process starts
  kp save dev 3000,3001      Save ports 3000,3001 as preset named "dev"
  kp load dev                Load and kill ports from "dev" preset
"""


def setup_logging(verbose: bool = False, quiet: bool = False):
    LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
    DATEFMT = "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(handlers=[], force=True)
    # stdout is reserved for results and --json output
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATEFMT))
    root = logging.getLogger()
    if verbose or os.getenv("PORT_KILLER_DEBUG") == "1":
        root.setLevel(logging.DEBUG)
    elif quiet:
        root.setLevel(logging.ERROR)
    else:
        root.setLevel(logging.WARNING)
    root.addHandler(handler)


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser():
    # fmt: off
    base = argparse.ArgumentParser(add_help=False)
    base.add_argument("--verbose", "-v", dest="verbose", action="store_true", help="Show detailed logs during execution")
    base.add_argument("--quiet", "-q", dest="quiet", action="store_true", help="Suppress all output except errors")
    base.add_argument("--config", "-c", dest="config", type=str, default=None, help="Use a custom configuration file")

    batch = argparse.ArgumentParser(add_help=False)
    batch.add_argument("--force", "-f", dest="force", action="store_true", help="Kill processes without asking for confirmation")
    batch.add_argument("--list", "-l", dest="list_ports", action="store_true", help="Show all running ports before and after the operation")
    batch.add_argument("--info", "-i", dest="info", action="store_true", help="Display detailed information about processes before killing them")
    batch.add_argument("--json", "-j", dest="json", action="store_true", help="Output results in JSON format")
    batch.add_argument("--dry-run", "-d", dest="dry_run", action="store_true", help="Show what would be killed without killing anything")

    parser = ArgumentParser(
        prog="kp",
        description="Port Killer - find and kill the processes listening on your ports",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="{watch,scan,save,load}")

    kill = sub.add_parser("kill", parents=[base, batch], help=argparse.SUPPRESS)
    kill.add_argument("ports", nargs="?", default=None, help="Port(s): 3000, 3000,3001, 3000-3010 or a mix")

    watch = sub.add_parser("watch", parents=[base], help="Monitor a port and offer to kill any process that starts using it")
    watch.add_argument("port", help="The port number to watch")
    watch.add_argument("--interval", "-i", dest="interval", type=int, default=1000, help="How often to check the port (ms)")

    scan = sub.add_parser("scan", parents=[base], help="List all active listening ports")
    scan.add_argument("--json", "-j", dest="json", action="store_true", help="Output the scan results in JSON format")

    save = sub.add_parser("save", parents=[base], help="Save ports as a named preset")
    save.add_argument("name", help='Preset name (e.g. "dev")')
    save.add_argument("ports", help="Port(s) to save (e.g. 3000,3001 or 3000-3010)")

    load = sub.add_parser("load", parents=[base, batch], help="Kill the ports of a saved preset")
    load.add_argument("name", help="Name of the preset to load")
    # fmt: on
    return parser


def normalize_argv(argv: list[str]) -> list[str]:
    """
    Move the sub-command name to the front so global flags may come first,
    and route bare port arguments to the implicit "kill" command.
    """
    skip = False
    for i, token in enumerate(argv):
        if skip:
            skip = False
            continue
        if token in OPTIONS_WITH_VALUE:
            skip = True
            continue
        if token.startswith("-"):
            continue
        if token in COMMANDS:
            return [token] + argv[:i] + argv[i + 1:]
        return ["kill"] + argv
    if any(t in ("-h", "--help", "-V", "--version") for t in argv):
        return argv
    return ["kill"] + argv


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_args(normalize_argv(list(argv)))
    setup_logging(verbose=args.verbose, quiet=args.quiet)
    logger = logging.getLogger("main")

    if args.command == "kill" and not args.ports:
        parser.print_help()
        return 0

    try:
        return run(args)
    except PortKillerError as e:
        Display().error(str(e))
        return 1
    except KeyboardInterrupt:
        Display().error(CANCELLED_BY_USER)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1
