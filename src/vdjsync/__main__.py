"""Command-line runner: drives the plugin against a simulated host.

Useful for exercising a video sync server without VirtualDJ. Deck 1 plays
a track; with ``--mirror`` deck 2 echoes it the way the host does when
the effect sits on the master bus.
"""

import argparse
import logging
import signal
import sys
from dataclasses import replace

from PySide6.QtCore import QCoreApplication, QObject, QTimer

from vdjsync import __version__
from vdjsync.core.config import ConfigManager
from vdjsync.core.host import MemoryHost
from vdjsync.core.plugin import VideoSyncPlugin
from vdjsync.models.deck_state import DeckState
from vdjsync.models.endpoint import Endpoint, InvalidEndpointError

logger = logging.getLogger(__name__)

SIMULATION_STEP_MS = 100

# Settings scope for the runner, kept apart from the plugin's own parameters
SIMULATOR_APPLICATION = "VdjVideoSyncSimulator"


class DeckSimulator(QObject):
    """Advances a playing deck on a MemoryHost from a Qt timer."""

    def __init__(self, host: MemoryHost, mirror: bool = False, parent: QObject | None = None) -> None:
        """Initialize the simulator.

        Args:
            host: Host to publish deck values on.
            mirror: Echo deck 1 onto deck 2.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._host = host
        self._mirror = mirror
        self._state = DeckState(
            deck=1,
            is_audible=True,
            is_playing=True,
            volume=1.0,
            bpm=124.0,
            filename="demo-track.mp3",
            total_time_ms=240_000,
            title="Demo Track",
            artist="VDJ Video Sync",
        )
        self._timer = QTimer(self)
        self._timer.setInterval(SIMULATION_STEP_MS)
        self._timer.timeout.connect(self._step)

    def start(self) -> None:
        """Publish the initial state and start advancing."""
        self._publish()
        self._timer.start()

    def _step(self) -> None:
        elapsed = (self._state.elapsed_ms + SIMULATION_STEP_MS) % self._state.total_time_ms
        self._state = replace(self._state, elapsed_ms=elapsed)
        self._publish()

    def _publish(self) -> None:
        self._host.load_deck(self._state)
        if self._mirror:
            self._host.load_deck(replace(self._state, deck=2, title="", artist=""))


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="vdjsync",
        description="VDJ Video Sync - simulated deck sender",
    )
    parser.add_argument("--host", default=None, help="video sync server host")
    parser.add_argument("--port", default=None, help="video sync server port")
    parser.add_argument("--decks", type=int, default=None, help="number of decks (1-4)")
    parser.add_argument("--interval-ms", type=int, default=None, help="sampling interval")
    parser.add_argument(
        "--duration", type=float, default=0.0, help="seconds to run (default: until Ctrl+C)"
    )
    parser.add_argument("--mirror", action="store_true", help="echo deck 1 onto deck 2")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> ConfigManager:
    """Return the runner's parameter store with command-line overrides applied.

    Uses its own settings scope so a simulated run never changes the
    parameters stored for the real plugin.

    Raises:
        InvalidEndpointError: If --host or --port is invalid.
    """
    config = ConfigManager(application=SIMULATOR_APPLICATION)
    if args.host is not None or args.port is not None:
        endpoint = Endpoint.from_strings(
            args.host or config.get_server_ip(), args.port or config.get_server_port()
        )
        config.set_server_ip(endpoint.host)
        config.set_server_port(endpoint.port)
    if args.decks is not None:
        config.set_deck_count(args.decks)
    if args.interval_ms is not None:
        config.set_poll_interval_ms(args.interval_ms)
    return config


def main(argv: list[str] | None = None) -> int:
    """Run the simulated plugin.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except InvalidEndpointError as e:
        logger.error("%s", e)
        return 2

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    QCoreApplication.setApplicationName("VdjVideoSync")

    host = MemoryHost()
    simulator = DeckSimulator(host, mirror=args.mirror)
    plugin = VideoSyncPlugin(host, config)

    plugin.sampler.deck_sent.connect(
        lambda state: logger.debug(
            "Sent deck %d: %s at %d ms", state.deck, state.filename, state.elapsed_ms
        )
    )
    plugin.config_sync.endpoint_changed.connect(
        lambda endpoint: logger.info("Now sending to %s", endpoint)
    )

    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # Let the interpreter run periodically so Ctrl+C is handled
    keepalive = QTimer()
    keepalive.timeout.connect(lambda: None)
    keepalive.start(200)
    if args.duration > 0:
        QTimer.singleShot(int(args.duration * 1000), app.quit)

    simulator.start()
    plugin.on_load()
    plugin.on_start()
    try:
        code = app.exec()
    finally:
        plugin.on_stop()
        plugin.release()
        stats = plugin.dispatcher.stats
        logger.info("Sent %d updates (%d failed)", stats.sent, stats.failed)
    return code


if __name__ == "__main__":
    sys.exit(main())
