"""
gridsnap - Entry point.

Run with:  python -m gridsnap layouts --workarea 0,0,1920,1080
           python -m gridsnap settings --config my-settings.json
           python -m gridsnap run

Prints the absolute geometry of the configured layouts for a workarea
or the effective settings, or runs the tiling engine on the desktop.
"""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from gridsnap.config.global_state import GlobalState
from gridsnap.config.keybindings import KeyBindingDispatcher
from gridsnap.config.settings import Settings
from gridsnap.core.timers import TimerQueue
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.service import TilingService
from gridsnap.tiling.tiling_layout import TilingLayout

log = logging.getLogger("gridsnap")


class SafeStreamHandler(logging.StreamHandler):
    """Handler that replaces unencodable characters instead of crashing."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            enc = getattr(self.stream, "encoding", "utf-8") or "utf-8"
            safe = msg.encode(enc, errors="replace").decode(enc, errors="replace")
            self.stream.write(safe + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure logging for gridsnap."""
    fmt = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    handler = SafeStreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # Per-relayout messages are too chatty even for debugging
    logging.getLogger("gridsnap.tiling.tiling_layout").setLevel(max(level, logging.INFO))


def parse_rect(value: str) -> Rect:
    try:
        x, y, w, h = (int(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected x,y,width,height: {value!r}") from None
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"workarea must have a positive size: {value!r}")
    return Rect(x, y, w, h)


def load_settings(path: str | None) -> Settings:
    if path is None:
        return Settings()
    with open(path, encoding="utf-8") as f:
        return Settings.from_mapping(json.load(f))


def cmd_layouts(args: argparse.Namespace, settings: Settings) -> int:
    state = GlobalState(settings)
    try:
        for layout in state.layouts:
            tiling_layout = TilingLayout(
                layout,
                settings.get_inner_gaps(),
                settings.get_outer_gaps(),
                args.workarea,
                args.scale,
            )
            print(f"{layout.id} ({layout.name}):")
            for tile, rect, gapped in zip(
                layout.tiles, tiling_layout.tile_rects(), tiling_layout.gapped_rects()
            ):
                print(f"  {tile}  {rect}  -> {gapped}")
    finally:
        state.destroy()
    return 0


def cmd_settings(args: argparse.Namespace, settings: Settings) -> int:
    for key in Settings.keys():
        if key == Settings.LAYOUTS_JSON:
            continue
        print(f"{key} = {settings.get(key)!r}")
    return 0


def cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    try:
        from gridsnap.host.eventloop import Win32EventLoop
        from gridsnap.host.win32 import Win32Host
    except ImportError as exc:
        log.error("The run command needs Windows and pywin32: %s", exc)
        return 1

    timers = TimerQueue()
    host = Win32Host(timers)
    state = GlobalState(settings)
    service = TilingService(host, settings, state, timers, enable_scaling=args.scaling)
    dispatcher = KeyBindingDispatcher(service, settings)
    loop = Win32EventLoop(host, timers, dispatcher)

    print("=" * 60)
    print("  gridsnap")
    print("=" * 60)
    for monitor in host.get_monitors():
        print(f"  monitor {monitor.index}: {monitor.work_rect}")
    for combo, action in sorted(dispatcher.bindings().items(), key=lambda item: item[1].value):
        print(f"  {action.value:<24} {combo.key} ({combo.modifiers:#x})")
    print("  Ctrl+C to exit")
    print()

    try:
        service.enable()
        host.scan_windows()
        loop.run()
    except RuntimeError as exc:
        log.error("Could not start the event loop: %s", exc)
        return 1
    finally:
        service.destroy()
        state.destroy()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gridsnap", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--config", help="JSON file with settings (hyphenated keys)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_layouts = sub.add_parser("layouts", help="print layout geometry for a workarea")
    p_layouts.add_argument("--workarea", type=parse_rect, default=Rect(0, 0, 1920, 1080),
                           help="x,y,width,height (default 0,0,1920,1080)")
    p_layouts.add_argument("--scale", type=float, default=None, help="monitor scaling factor")
    p_layouts.set_defaults(func=cmd_layouts)

    p_settings = sub.add_parser("settings", help="print the effective settings")
    p_settings.set_defaults(func=cmd_settings)

    p_run = sub.add_parser("run", help="tile windows on this desktop (Windows only)")
    p_run.add_argument("--scaling", action="store_true", help="scale gaps by monitor DPI")
    p_run.set_defaults(func=cmd_run)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = load_settings(args.config)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        log.error("Could not load settings from %s: %s", args.config, exc)
        return 1

    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
