import logging
from typing import Optional

from .display import Display
from .errors import ParseError
from .killer import BatchKiller
from .models import KillResult, OperationOptions
from .ports import parse_port, parse_ports
from .presets import PresetStore
from .resolver import PlatformResolver, get_resolver
from .watcher import PortWatcher

logger = logging.getLogger("main")


def list_active_ports(resolver: PlatformResolver, display: Display) -> None:
    with display.status("Scanning active ports..."):
        processes = resolver.resolve_all()
    display.process_list(processes)


def kill_ports(
    ports: list[int],
    options: OperationOptions,
    resolver: PlatformResolver,
    display: Display,
) -> list[KillResult]:
    if options.list_ports and not options.quiet:
        list_active_ports(resolver, display)

    killer = BatchKiller(
        resolver,
        confirm=display.confirm,
        on_info=display.process_info,
        on_progress=lambda port: logger.debug(f"Processing port {port}..."),
    )
    results = killer.execute(ports, options)
    logger.debug(f"Port processing complete: {sum(r.success for r in results)}/{len(results)} succeeded")

    if options.json:
        display.json(results)
    else:
        display.results(results, dry_run=options.dry_run)

    if options.list_ports and not options.quiet:
        list_active_ports(resolver, display)
    return results


def watch_port(args, resolver: PlatformResolver, display: Display) -> None:
    port = parse_port(args.port)
    if args.interval <= 0:
        raise ParseError(f"Invalid interval: {args.interval}", str(args.interval))
    watcher = PortWatcher(
        resolver,
        confirm=display.confirm,
        port=port,
        interval_ms=args.interval,
        on_found=display.found,
        on_killed=display.killed,
    )
    display.info(f"[blue]Watching port {port}...[/blue]")
    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()
        logger.info(f"Stopped watching port {port}")


def scan_ports(options: OperationOptions, resolver: PlatformResolver, display: Display) -> None:
    with display.status("Scanning ports..."):
        processes = resolver.resolve_all()
    if options.json:
        display.json(processes)
    else:
        display.process_list(processes)


def save_preset(args, store: PresetStore, display: Display) -> None:
    ports = parse_ports(args.ports)
    store.save(args.name, ports)
    display.info(f'[green]Preset "{args.name}" saved successfully[/green]')


def apply_log_level(options: OperationOptions) -> None:
    # config defaults can turn on -v/-q after setup_logging already ran
    root = logging.getLogger()
    if options.verbose or root.level == logging.DEBUG:
        root.setLevel(logging.DEBUG)
    elif options.quiet:
        root.setLevel(logging.ERROR)


def run(
    args,
    resolver: Optional[PlatformResolver] = None,
    store: Optional[PresetStore] = None,
    display: Optional[Display] = None,
) -> int:
    store = store or PresetStore(args.config)
    options = OperationOptions.from_args(args, store.default_options())
    apply_log_level(options)
    resolver = resolver or get_resolver()
    display = display or Display(quiet=options.quiet)
    logger.debug(f"command={args.command} resolver={type(resolver).__name__} config={store.path}")

    if args.command == "watch":
        watch_port(args, resolver, display)
    elif args.command == "scan":
        scan_ports(options, resolver, display)
    elif args.command == "save":
        save_preset(args, store, display)
    elif args.command == "load":
        ports = store.load(args.name)
        kill_ports(ports, options, resolver, display)
    else:
        ports = parse_ports(args.ports)
        kill_ports(ports, options, resolver, display)
    return 0
