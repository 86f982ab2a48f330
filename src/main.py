"""
Object counter entry point.

Usage:
    python src/main.py serve [--config config/config.yaml]
    python src/main.py run [--source video.mp4] [--display] [--duration 30]
    python src/main.py export [--output history.csv]
    python src/main.py clear --yes

Commands:
    serve:  Run the web API (session control, frame upload, history).
    run:    Run one detection session on a camera, video file or image and
            save it to history when it ends.
    export: Write the saved history to a CSV file, oldest first.
    clear:  Delete all saved sessions.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from counting import FrameClassifier
from detection import DetectorAdapter, create_backend_factory
from export import write_csv
from models.config import Config
from observation import create_source_from_config
from ops.config import DEFAULT_CONFIG_PATH, load_config, validate_config
from ops.errors import CounterError, DetectorUnavailableError, StorageError
from ops.logging import setup_logging
from pipeline import PipelineConfig, PipelineEngine
from session import SessionController
from storage import HistoryStore
from web.app import create_app


def build_config(config_path: str) -> Config:
    """Load, validate and type the layered configuration. Exits on invalid config."""
    try:
        raw = load_config(config_path)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)
    return Config.from_dict(raw)


async def open_store(cfg: Config) -> HistoryStore:
    """
    Open the history store.

    A failure is logged and the store is returned uninitialized, so callers
    degrade (empty history, sessions not saved) instead of exiting.
    """
    store = HistoryStore.from_path(cfg.storage.local_database_path)
    try:
        await store.initialize()
    except StorageError as e:
        logging.error(f"History store unavailable: {e}")
    return store


def build_controller(cfg: Config, store: Optional[HistoryStore]) -> SessionController:
    detector = DetectorAdapter(create_backend_factory(cfg.detection))
    classifier = FrameClassifier(
        confidence_threshold=cfg.counting.confidence_threshold,
        selected_classes=cfg.counting.classes,
    )
    display_size = None
    if cfg.display.width and cfg.display.height:
        display_size = (cfg.display.width, cfg.display.height)
    return SessionController(detector, store, classifier=classifier, display_size=display_size)


def cmd_serve(cfg: Config, args: argparse.Namespace) -> int:
    store = asyncio.run(open_store(cfg))
    controller = build_controller(cfg, store)
    app = create_app(controller, store)

    host = args.host or cfg.web.host
    port = args.port or cfg.web.port
    logging.info(f"Web interface starting on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=cfg.log_level.lower())
    return 0


async def _run_session(cfg: Config, args: argparse.Namespace) -> int:
    if args.source is not None:
        cfg.source.device_id = int(args.source) if args.source.isdigit() else args.source

    store = await open_store(cfg)
    controller = build_controller(cfg, store)
    source = create_source_from_config(cfg.source)
    display = args.display or cfg.display.enabled
    engine = PipelineEngine(
        source,
        controller,
        PipelineConfig(
            max_duration=args.duration,
            display=display,
            display_size=controller.display_size,
        ),
    )

    try:
        record_id = await engine.run()
    except RuntimeError as e:
        logging.error(f"Could not open source: {e}")
        return 1
    except DetectorUnavailableError as e:
        logging.error(f"Detection model unavailable: {e}")
        return 1
    finally:
        controller.dispose()
        await store.close()

    if record_id is None:
        logging.warning("Session ended without being saved")
        return 1 if controller.last_error else 0
    logging.info(f"Session saved: id={record_id}")
    return 0


def cmd_run(cfg: Config, args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_run_session(cfg, args))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130


async def _export(cfg: Config, args: argparse.Namespace) -> int:
    store = await open_store(cfg)
    try:
        records = await store.list_all()
        write_csv(records, args.output or cfg.storage.export_path)
    except CounterError as e:
        logging.error(f"Export failed: {e}")
        return 1
    finally:
        await store.close()
    return 0


def cmd_export(cfg: Config, args: argparse.Namespace) -> int:
    return asyncio.run(_export(cfg, args))


async def _clear(cfg: Config) -> int:
    store = await open_store(cfg)
    try:
        deleted = await store.clear_all()
    except CounterError as e:
        logging.error(f"Clear failed: {e}")
        return 1
    finally:
        await store.close()
    logging.info(f"Deleted {deleted} sessions")
    return 0


def cmd_clear(cfg: Config, args: argparse.Namespace) -> int:
    if not args.yes:
        logging.error("Refusing to delete history without --yes")
        return 2
    return asyncio.run(_clear(cfg))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Object Counter")
    parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH,
                        help='Path to configuration file')
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web API")
    serve.add_argument('--host', type=str, default=None, help='Bind address (default: web.host)')
    serve.add_argument('--port', type=int, default=None, help='Port (default: web.port)')
    serve.set_defaults(func=cmd_serve)

    run = sub.add_parser("run", help="Run one detection session and save it")
    run.add_argument('--source', type=str, default=None,
                     help='Camera index, video file, stream URL or image (default: source.device_id)')
    run.add_argument('--display', action='store_true', help='Show a preview window (q stops)')
    run.add_argument('--duration', type=float, default=None,
                     help='Stop and save after this many seconds')
    run.set_defaults(func=cmd_run)

    export = sub.add_parser("export", help="Write history to CSV")
    export.add_argument('--output', type=str, default=None,
                        help='Output path (default: storage.export_path)')
    export.set_defaults(func=cmd_export)

    clear = sub.add_parser("clear", help="Delete all saved sessions")
    clear.add_argument('--yes', action='store_true', help='Confirm deletion')
    clear.set_defaults(func=cmd_clear)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    args = build_parser().parse_args(argv)
    cfg = build_config(args.config)
    setup_logging(cfg.log_path, cfg.log_level)
    logging.info(f"Starting Object Counter ({args.command})")
    return args.func(cfg, args)


if __name__ == "__main__":
    sys.exit(main())
