"""CLI orchestration for the slide presenter."""

from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import List, Optional, TextIO

from .assets import AssetResolver
from .config import Settings, load_settings
from .errors import CatalogValidationError
from .loading import FAILED, AssetLoader, LazySequenceLoader, ReadinessBoard, slide_refs
from .render import PptxDeckRenderer
from .session import PresentationSession
from .validation import validate_asset_table_file, validate_catalog_file

DEFAULT_CATALOG = Path(__file__).resolve().parents[2] / "assets" / "sample_catalog.json"

# Key names accepted by `present`, one per line; aliases map to browser key names.
KEY_ALIASES = {
    "space": "Space",
    "right": "ArrowRight",
    "left": "ArrowLeft",
    "pagedown": "PageDown",
    "pageup": "PageUp",
    "n": "ArrowRight",
    "p": "ArrowLeft",
    "": "Space",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build, inspect and present a modular slide deck")
    parser.add_argument("--catalog", default=None, help="Path to the slide catalog JSON file")
    parser.add_argument("--asset-map", default=None, help="Optional JSON file overriding the default asset tables")
    parser.add_argument("--assets-dir", default=None, help="Directory holding local image assets")
    parser.add_argument("--env-file", default=None, help="Additional .env file to load")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--all", dest="include_all", action="store_const", const=True, help="Include every document page")
    mode.add_argument(
        "--reduced", dest="include_all", action="store_const", const=False, help="Drop document pages 5-17"
    )
    parser.add_argument("--debug", action="store_true", help="Show full traceback for unexpected errors")

    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("list", help="Print the active slide sequence")
    sub.add_parser("modules", help="Print the module index")

    p_export = sub.add_parser("export", help="Write the active sequence to a PPTX deck")
    p_export.add_argument("--output", required=True, help="Output PPTX file path")

    p_preload = sub.add_parser("preload", help="Load every asset of the active sequence and report failures")
    p_preload.add_argument(
        "--every-asset", action="store_true", help="Load every asset the asset table can produce, not just the active ones"
    )

    p_present = sub.add_parser("present", help="Navigate the deck with key names read from stdin")
    p_present.add_argument("--no-toggle", action="store_true", help="Disable the full/reduced toggle")
    return parser


def _make_session(args: argparse.Namespace, settings: Settings) -> PresentationSession:
    catalog_path = Path(args.catalog) if args.catalog else (settings.catalog_path or DEFAULT_CATALOG)
    catalog = validate_catalog_file(catalog_path.resolve())
    table = validate_asset_table_file(Path(args.asset_map).resolve()) if args.asset_map else None
    include_all = settings.include_all if args.include_all is None else args.include_all
    allow_toggle = settings.allow_toggle and not getattr(args, "no_toggle", False)
    return PresentationSession(
        catalog.records,
        include_all,
        resolver=AssetResolver(table),
        allow_toggle=allow_toggle,
        title=catalog.title,
    )


def _assets_dir(args: argparse.Namespace, settings: Settings) -> Optional[Path]:
    if args.assets_dir:
        return Path(args.assets_dir).resolve()
    return settings.assets_dir


def _describe(session: PresentationSession) -> str:
    slide = session.current_slide
    if slide is None:
        return "[0 / 0] (empty deck)"
    module = session.current_module
    marker = "*" if slide.is_module_start else " "
    module_name = module.name if module else ""
    return f"[{session.counter_text}]{marker} {slide.title} ({module_name})"


def cmd_list(session: PresentationSession, out: TextIO) -> None:
    mode = "full" if session.include_all else "reduced"
    print(f"Total slides: {session.total} ({mode})", file=out)
    for slide in session.slides:
        marker = "*" if slide.is_module_start else " "
        print(f"{marker} Slide {slide.id}: {slide.title} ({slide.module}) [{slide.layout_type}]", file=out)


def cmd_modules(session: PresentationSession, out: TextIO) -> None:
    for idx, module in enumerate(session.modules, start=1):
        print(f"{idx}\t{module.start_index + 1}\t{module.color}\t{module.full_name}", file=out)


def cmd_export(session: PresentationSession, output: str, assets_dir: Optional[Path], out: TextIO) -> Path:
    renderer = PptxDeckRenderer(session.slides, session.modules, assets_dir=assets_dir, title=session.title)
    renderer.render()
    saved = renderer.save(output)
    for ref in renderer.missing_assets:
        print(f"⚠️  Asset not found, drew placeholder: {ref}", file=sys.stderr)
    print(f"Saved {session.total} slides to {saved}", file=out)
    return saved


def cmd_preload(
    session: PresentationSession, assets_dir: Optional[Path], out: TextIO, *, every_asset: bool = False
) -> int:
    if every_asset:
        refs = session.asset_table.all_refs()
    else:
        refs = list(dict.fromkeys(ref for slide in session.slides for ref in slide_refs(slide)))

    board = ReadinessBoard(session.generation)
    with AssetLoader(assets_dir) as loader:
        futures = {ref: loader.load(ref) for ref in refs}
        for ref, future in futures.items():
            board.track(session.generation, ref, future)
        failed = [ref for ref, future in futures.items() if future.result() == FAILED]

    for ref in failed:
        print(f"⚠️  Asset failed to load (placeholder stays): {ref}", file=sys.stderr)
    ready = sum(1 for ref in refs if board.is_ready(ref))
    print(f"Ready: {ready}/{len(refs)} assets ({len(failed)} failed)", file=out)
    return len(failed)


def cmd_present(
    session: PresentationSession, inp: TextIO, out: TextIO, *, loader: Optional[AssetLoader] = None
) -> Optional[LazySequenceLoader]:
    """Drive the session from key names on ``inp``.

    With a ``loader``, each slide's images start loading the first time the
    slide is shown; the returned LazySequenceLoader reports their readiness.
    """
    lazy = LazySequenceLoader(loader) if loader is not None else None

    def show() -> None:
        if lazy is not None:
            lazy.watch(session.generation, session.slides)
            lazy.show(session.generation, session.current_slide)
        print(_describe(session), file=out)

    show()
    for raw in inp:
        token = raw.strip()
        lowered = token.lower()
        if lowered in {"q", "quit", "exit"}:
            break
        if lowered == "t":
            if not session.toggle():
                print("Toggle is disabled", file=out)
        elif lowered.startswith("g "):
            try:
                session.click_module(int(lowered[2:].strip()) - 1)
            except ValueError:
                print(f"Not a module number: {token[2:].strip()}", file=out)
                continue
        elif not session.handle_key(KEY_ALIASES.get(lowered, token)):
            continue
        show()
    return lazy


def run_cli(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.env_file)
        session = _make_session(args, settings)
        assets_dir = _assets_dir(args, settings)

        if args.cmd == "list":
            cmd_list(session, sys.stdout)
        elif args.cmd == "modules":
            cmd_modules(session, sys.stdout)
        elif args.cmd == "export":
            cmd_export(session, args.output, assets_dir, sys.stdout)
        elif args.cmd == "preload":
            cmd_preload(session, assets_dir, sys.stdout, every_asset=args.every_asset)
        elif args.cmd == "present":
            with AssetLoader(assets_dir) as loader:
                cmd_present(session, sys.stdin, sys.stdout, loader=loader)
    except CatalogValidationError as e:
        raise SystemExit(str(e)) from e
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        raise SystemExit(f"Presentation command failed: {e}") from e


def main() -> None:
    run_cli()
