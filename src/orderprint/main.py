"""
Main entry point for orderprint.

Command line front end over the printing core: list printers, preview
or print an order record, run a test print.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from orderprint.config.settings import Settings, get_settings
from orderprint.core.events import Event, EventBus, EventType
from orderprint.hardware.printer import build_engine_chain, create_renderer
from orderprint.printing.directory import PrinterDirectory
from orderprint.printing.dispatcher import PrintDispatcher
from orderprint.printing.errors import PrintJobError
from orderprint.printing.layout import resolve_layout
from orderprint.printing.order import Order
from orderprint.printing.receipt import compose_receipt

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def load_order(path: str) -> Order:
    """Read an order record from a JSON file ('-' for stdin)."""
    if path == "-":
        data = json.load(sys.stdin)
    else:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    # Accept API envelopes like {"data": {...order...}}
    if "order_id" not in data and isinstance(data.get("data"), dict):
        data = data["data"]
    return Order.from_dict(data)


def build_dispatcher(settings: Settings, event_bus: Optional[EventBus] = None) -> PrintDispatcher:
    """Wire engines, directory and layout settings into a dispatcher."""
    return PrintDispatcher(
        engines=build_engine_chain(settings),
        directory=PrinterDirectory(auto_select=settings.auto_select_printer),
        event_bus=event_bus,
        layout_config=settings.layout.to_config(),
        footer_text=settings.layout.footer_text,
        job_timeout=settings.engine.job_timeout,
    )


def _log_engine_prompt(event: Event) -> None:
    """Point the operator at the remediation for a missing engine."""
    hint = event.data.get("hint")
    if hint:
        print(f"Print engine notice: {hint}", file=sys.stderr)


async def cmd_printers(settings: Settings) -> int:
    event_bus = EventBus()
    event_bus.subscribe(EventType.ENGINE_UNAVAILABLE, _log_engine_prompt)
    event_bus.subscribe(EventType.ENGINE_FALLBACK, _log_engine_prompt)

    dispatcher = build_dispatcher(settings, event_bus)
    printers = await dispatcher.refresh_printers()
    selection = await dispatcher.select_engine()

    print(f"Engine: {selection.name}" + (" (fallback)" if selection.fallback_occurred else ""))
    for printer in printers:
        flags = []
        if printer.is_default:
            flags.append("default")
        if printer.is_enabled:
            flags.append("selected")
        if printer.is_thermal:
            flags.append("thermal")
        print(f"  {printer.name:<32} {printer.width:>4}mm  {printer.status:<8} {' '.join(flags)}")
    return 0


def cmd_layout(settings: Settings, width: int, font_size: int) -> int:
    params = resolve_layout(width, font_size, settings.layout.to_config())
    print(json.dumps(asdict(params), indent=2))
    return 0


def cmd_preview(settings: Settings, order_path: str, width: int, font_size: int) -> int:
    order = load_order(order_path)
    params = resolve_layout(width, font_size, settings.layout.to_config())
    receipt = compose_receipt(order, params, footer_text=settings.layout.footer_text)
    print(create_renderer(settings).preview_text(receipt))
    return 0


async def cmd_print(settings: Settings, order_path: str, printers: Optional[List[str]]) -> int:
    order = load_order(order_path)
    dispatcher = build_dispatcher(settings)
    await dispatcher.refresh_printers()
    try:
        report = await dispatcher.print_order(order, printers or None)
    except PrintJobError as e:
        print(f"Print failed: {e}", file=sys.stderr)
        return 1

    print(report.summary())
    for error in report.errors:
        print(f"  warning: {error}", file=sys.stderr)
    return 0


async def cmd_test_print(settings: Settings, printer: str) -> int:
    dispatcher = build_dispatcher(settings)
    await dispatcher.refresh_printers()
    outcome = await dispatcher.test_print(printer)
    if outcome.success:
        print(f"Test print sent to {printer} via {outcome.engine}")
        return 0
    print(f"Test print failed: {outcome.error}", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orderprint", description="POS order receipt printing")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument(
        "--engine",
        choices=["helper", "native", "page", "mock"],
        help="Preferred print engine (overrides ORDERPRINT_ENGINE__PREFERENCE)",
    )
    parser.add_argument("--mock", action="store_true", help="Use the mock engine")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("printers", help="List printers from the active engine")

    layout = sub.add_parser("layout", help="Show resolved layout parameters")
    layout.add_argument("--width", type=int, default=None, help="Paper width in mm")
    layout.add_argument("--font-size", type=int, default=0, choices=[0, 1, 2])

    preview = sub.add_parser("preview", help="Render an order as text")
    preview.add_argument("order", help="Order JSON file, '-' for stdin")
    preview.add_argument("--width", type=int, default=None, help="Paper width in mm")
    preview.add_argument("--font-size", type=int, default=0, choices=[0, 1, 2])

    print_cmd = sub.add_parser("print", help="Print an order on the selected printers")
    print_cmd.add_argument("order", help="Order JSON file, '-' for stdin")
    print_cmd.add_argument("--printer", action="append", dest="printers", help="Target printer (repeatable)")

    test = sub.add_parser("test-print", help="Print the sample order on one printer")
    test.add_argument("printer", help="Printer name")

    return parser


def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a parsed command."""
    width = getattr(args, "width", None) or settings.default_paper_width

    if args.command == "printers":
        return asyncio.run(cmd_printers(settings))
    if args.command == "layout":
        return cmd_layout(settings, width, args.font_size)
    if args.command == "preview":
        return cmd_preview(settings, args.order, width, args.font_size)
    if args.command == "print":
        return asyncio.run(cmd_print(settings, args.order, args.printers))
    if args.command == "test-print":
        return asyncio.run(cmd_test_print(settings, args.printer))
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    load_dotenv()

    args = build_parser().parse_args(argv)
    settings = get_settings()

    overrides: Dict[str, Any] = {}
    if args.mock:
        overrides["preference"] = "mock"
    elif args.engine:
        overrides["preference"] = args.engine
    if overrides:
        settings = settings.model_copy(update={
            "engine": settings.engine.model_copy(update=overrides),
        })

    setup_logging(args.debug or settings.debug)

    try:
        sys.exit(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except (OSError, ValueError) as e:
        logger.error(f"{e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
