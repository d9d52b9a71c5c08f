from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .engine.config_io import DEFAULTS, PlayerConfig, save_config
from .engine.controller import PlaybackController, PlaybackStatus
from .engine.events import LinePresentedEvent
from .engine.registry import AssetRegistry
from .engine.surface import DummySurface
from .script.csv_export import export_csv, find_default_csv
from .script.errors import ScriptError
from .script.loader import load_episode_file

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 1000


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="talkvn", description="Talk-scene dialogue player")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="Play an episode JSON file")
    p_run.add_argument("episode", type=str, help="Path to the episode JSON")
    p_run.add_argument("--manifest", type=str, default=None, help="Asset manifest JSON (portraits, anchors, sprites, backgrounds)")
    p_run.add_argument("--start", type=str, default=None, help="Node id to start from")
    p_run.add_argument("--config", type=str, default=None, help="Player config JSON")
    p_run.add_argument("--pygame", action="store_true", help="Use the pygame window (interactive)")
    p_run.add_argument("--font", type=str, default=None, help="Path to TTF/OTF font for CJK text")
    p_run.add_argument("--font-size", type=int, default=28, help="Font size for UI text")
    p_run.add_argument("--max-lines", type=int, default=DEFAULT_MAX_LINES,
                       help="Stop a headless run after this many lines (looping scripts)")

    p_export = sub.add_parser("export", help="Convert the dialogue CSV into episode JSON files")
    p_export.add_argument("csv", type=str, nargs="?", default=None,
                          help="CSV path (default: dialogue_lines.csv in the current or csv/ folder)")
    p_export.add_argument("--out", type=str, default="episodes", help="Output directory")

    p_init = sub.add_parser("init-config", help="Write the default player config")
    p_init.add_argument("path", type=str, help="Destination JSON path")
    return parser


def _run_headless(controller: PlaybackController, start: Optional[str], max_lines: int) -> int:
    shown: List[int] = [0]

    def on_line(ev: LinePresentedEvent) -> None:
        shown[0] += 1
        line = ev.line
        print(f"{line.speaker}: {line.text}" if line.speaker else line.text)

    unsubscribe = controller.events.subscribe(LinePresentedEvent, on_line)
    try:
        controller.begin(start)
        while controller.status is PlaybackStatus.PRESENTING and shown[0] < max_lines:
            if controller.is_typing:
                controller.advance()
            controller.advance()
        if controller.status is not PlaybackStatus.FINISHED:
            logger.warning(f"Stopped after {shown[0]} line(s) without reaching the end")
    finally:
        unsubscribe()
        controller.shutdown()
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    episode_path = Path(args.episode)
    if not episode_path.exists():
        print(f"Episode not found: {episode_path}")
        return 2
    if args.manifest and not Path(args.manifest).exists():
        print(f"Manifest not found: {args.manifest}")
        return 2
    try:
        episode = load_episode_file(episode_path)
    except ScriptError as e:
        print(f"Script error: {e}")
        return 1
    try:
        registry = AssetRegistry.load_manifest(args.manifest) if args.manifest else AssetRegistry()
    except (OSError, ValueError) as e:
        print(f"Manifest error: {e}")
        return 1
    config = PlayerConfig.load(args.config)

    if args.pygame:
        from .engine.renderer_pygame import PygameSurface, run_pygame  # local import to avoid test deps
        asset_root = Path(args.manifest).resolve().parent if args.manifest else episode_path.resolve().parent
        surface = PygameSurface(title=f"talkvn - {episode.episode_id}", font_path=args.font,
                                font_size=args.font_size, asset_root=str(asset_root))
        controller = PlaybackController(surface=surface, registry=registry, config=config)
        try:
            controller.load(episode)
            controller.begin(args.start)
        except ScriptError as e:
            print(f"Script error: {e}")
            return 1
        run_pygame(controller, surface)
        return 0

    controller = PlaybackController(surface=DummySurface(), registry=registry, config=config)
    try:
        controller.load(episode)
        return _run_headless(controller, args.start, max(1, args.max_lines))
    except ScriptError as e:
        print(f"Script error: {e}")
        return 1


def _cmd_export(args: argparse.Namespace) -> int:
    csv_path = Path(args.csv) if args.csv else find_default_csv(Path.cwd())
    if csv_path is None or not csv_path.exists():
        print(f"CSV not found: {csv_path or 'dialogue_lines.csv'}")
        return 2
    written = export_csv(csv_path, args.out)
    for path in written:
        print(path)
    return 0


def _cmd_init_config(args: argparse.Namespace) -> int:
    if not save_config(DEFAULTS, args.path):
        return 1
    print(f"Wrote {args.path}")
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    argv_list = list(argv) if argv is not None else sys.argv[1:]
    args = parser.parse_args(argv_list)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "run":
        return _cmd_run(args)
    if args.cmd == "export":
        return _cmd_export(args)
    if args.cmd == "init-config":
        return _cmd_init_config(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
