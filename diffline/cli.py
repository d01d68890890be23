from __future__ import annotations

import argparse
import os
import sys
import threading
import time
from pathlib import Path
from typing import NoReturn, Optional

from diffline import __version__
from diffline.config import ConfigError, Settings, load_settings
from diffline.core import git as git_mod
from diffline.core import paths
from diffline.core.log import configure_logging
from diffline.render import StyledText, render, to_ansi
from diffline.scheduler import RefreshScheduler

# Timer threads and the main loop both repaint the watch line.
_print_lock = threading.Lock()


def _die(msg: str) -> NoReturn:
    print(msg, file=sys.stderr)
    sys.exit(1)


def _repo_root_or_cwd(path: Optional[str] = None) -> str:
    cwd = paths.file_dir(path) if path else os.getcwd()
    if not os.path.isdir(cwd):
        return os.getcwd()
    root = paths.git_root(cwd)
    return root if root else cwd


def _settings(path: Optional[str] = None) -> Settings:
    try:
        return load_settings(_repo_root_or_cwd(path))
    except ConfigError as exc:
        _die(f"config error: {exc}")


def _interval(args: argparse.Namespace, settings: Settings) -> float:
    interval = args.interval if args.interval is not None else settings.interval
    if interval <= 0:
        _die("interval must be positive")
    return interval


def _paint(styled: StyledText, settings: Settings, plain: bool) -> str:
    return styled.text if plain else to_ansi(styled, settings.palette)


def cmd_show(args: argparse.Namespace) -> None:
    for path in args.paths:
        settings = _settings(path)
        styled = render(git_mod.read_raw_counts(path), settings.display, target=path)
        if styled is None:
            continue
        line = f"{path}: {_paint(styled, settings, args.plain)}"
        if args.tooltip:
            line += f"  ({styled.tooltip})"
        print(line)


def cmd_watch(args: argparse.Namespace) -> None:
    from diffline.watcher import start_watching

    path = args.path
    settings = _settings(path)
    interval = _interval(args, settings)

    def _print_strip(key: str) -> None:
        styled = render(scheduler.get(key), settings.display, target=key)
        text = _paint(styled, settings, args.plain) if styled else ""
        with _print_lock:
            print(f"{key}: {text}".ljust(80), end="\r", flush=True)

    scheduler = RefreshScheduler(git_mod.read_raw_counts, interval=interval, on_refresh=_print_strip)
    scheduler.start(path)
    _print_strip(path)
    try:
        observer = start_watching(scheduler, [path])
    except RuntimeError as exc:
        scheduler.stop_all()
        _die(str(exc))

    try:
        while True:
            time.sleep(max(0.2, interval / 2))
            # Triggered refreshes do not call on_refresh; repaint from the cache.
            _print_strip(path)
    except KeyboardInterrupt:
        print()
    finally:
        observer.stop()
        observer.join()
        scheduler.stop_all()


def cmd_tui(args: argparse.Namespace) -> None:
    from diffline.tui import run_tui
    from diffline.watcher import start_watching

    settings = _settings(args.paths[0])
    scheduler = RefreshScheduler(git_mod.read_raw_counts, interval=_interval(args, settings))
    for path in args.paths:
        scheduler.start(path)
    try:
        observer = start_watching(scheduler, args.paths)
    except RuntimeError as exc:
        scheduler.stop_all()
        _die(str(exc))

    try:
        target = run_tui(scheduler, list(args.paths), settings.display, settings.palette)
    finally:
        observer.stop()
        observer.join()
        scheduler.stop_all()
    if target:
        _open_diff(target)


def cmd_diff(args: argparse.Namespace) -> None:
    _open_diff(args.path)


def _open_diff(path: str) -> None:
    try:
        code = git_mod.open_diff(path)
    except git_mod.GitError as exc:
        _die(str(exc))
    if code not in (0, 1):
        sys.exit(code)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="diffline")
    parser.add_argument(
        "--version", action="version", version=f"diffline {__version__}"
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--log-file", type=Path, default=None)
    sub = parser.add_subparsers(dest="cmd")

    show = sub.add_parser("show")
    show.add_argument("paths", nargs="+")
    show.add_argument("--plain", action="store_true")
    show.add_argument("--tooltip", action="store_true")
    show.set_defaults(func=cmd_show)

    watch = sub.add_parser("watch")
    watch.add_argument("path")
    watch.add_argument("--interval", type=float, default=None)
    watch.add_argument("--plain", action="store_true")
    watch.set_defaults(func=cmd_watch)

    tui = sub.add_parser("tui")
    tui.add_argument("paths", nargs="+")
    tui.add_argument("--interval", type=float, default=None)
    tui.set_defaults(func=cmd_tui)

    diff = sub.add_parser("diff")
    diff.add_argument("path")
    diff.set_defaults(func=cmd_diff)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
