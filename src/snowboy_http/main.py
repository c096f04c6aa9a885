"""Main entry point for snowboy-http."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from snowboy_http.actions.executor import ActionExecutor
from snowboy_http.actions.table import ActionDescriptor, build_action_table
from snowboy_http.config import APP_NAME, DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from snowboy_http.models import ModelEntry, NoModelsError, scan_models
from snowboy_http.router import DetectionEventRouter, HotwordEvent

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Trigger HTTP requests when a hotword is heard",
    )
    parser.add_argument(
        "-c", "--config", type=str, default=str(DEFAULT_CONFIG_PATH),
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose mode")
    parser.add_argument("--dry-run", action="store_true", help="Test config and exit")
    return parser.parse_args(argv)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(format=LOG_FORMAT, handlers=[logging.StreamHandler()])
    # basicConfig is a no-op once handlers exist, so always apply the level
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def add_log_file(log_file: str) -> None:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)


class HotwordApp:
    """Wires models, actions, engine and microphone into one pipeline."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.shutdown_event = asyncio.Event()

        # Components (initialized in build/setup)
        self.models: list[ModelEntry] = []
        self.actions: dict[str, ActionDescriptor] = {}
        self._executor: ActionExecutor | None = None
        self._router: DetectionEventRouter | None = None
        self._session = None
        self._events: asyncio.Queue[HotwordEvent] = asyncio.Queue()

    @property
    def router(self) -> DetectionEventRouter | None:
        return self._router

    def build(self) -> None:
        """Resolve models and actions. Raises on any configuration problem."""
        general = self.config.general
        self.models = scan_models(general.model_dir, self.config)
        self.actions = build_action_table(self.config)

        self._executor = ActionExecutor(timeout=general.http_timeout)
        self._router = DetectionEventRouter(self.actions, self._executor)

    async def setup(self) -> None:
        """Load the engine and open the microphone."""
        from snowboy_http.audio.recorder import MicrophoneRecorder
        from snowboy_http.engine import create_engine
        from snowboy_http.session import DetectionSession

        if self._router is None:
            self.build()

        general = self.config.general
        engine = create_engine(general, self.models)
        recorder = MicrophoneRecorder(
            sample_rate=engine.sample_rate,
            channels=engine.channels,
            device=general.device,
            capture_rate=general.sample_rate,
            block_ms=general.block_ms,
        )
        self._session = DetectionSession(engine, recorder, self._router)
        self._session.open(asyncio.get_running_loop())

    async def run(self) -> None:
        """Listen until a shutdown signal arrives."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        self._router.start()
        logger.info("Recording audio...")

        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self._session.run(self._events, self.shutdown_event))
                tg.create_task(self._router.run(self._events, self.shutdown_event))
        finally:
            await self.cleanup()

    def _handle_shutdown(self) -> None:
        logger.info("Shutdown signal received")
        self.shutdown_event.set()

    async def cleanup(self) -> None:
        """Release the microphone and let in-flight actions finish briefly."""
        logger.info("Cleaning up...")

        if self._session is not None:
            self._session.close()
            self._session = None

        if self._executor is not None:
            await self._executor.drain()
            self._executor.close()

        if self._router is not None:
            self._router.stop()

        logger.info("Shutdown complete")


async def run_app(app: HotwordApp) -> None:
    """Run the detection pipeline until shutdown."""
    await app.setup()
    await app.run()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(args.config)
        if config.general.log_file:
            add_log_file(config.general.log_file)

        app = HotwordApp(config)
        app.build()

        if args.dry_run:
            logger.info(f"Models: {[m.label for m in app.models]}")
            logger.info(f"Actions: {sorted(app.actions)}")
            print("Dry run OK - config valid")
            return 0

        asyncio.run(run_app(app))

    except (ConfigError, NoModelsError, OSError, ImportError) as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
