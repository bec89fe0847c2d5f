"""Host lifecycle adapter for the Video Sync effect.

Translates the host's plugin callbacks into start/stop/reconcile calls on
the sampler, watcher and config sync. The host guarantees load before
start, and stop before release; nothing else about callback timing is
assumed.
"""

import logging
from dataclasses import dataclass

from vdjsync import __version__
from vdjsync.api.dispatcher import Dispatcher
from vdjsync.core.config import ConfigManager
from vdjsync.core.config_sync import ConfigSync
from vdjsync.core.host import HostQuery
from vdjsync.core.sampler import SamplerLoop
from vdjsync.core.watcher import WatcherLoop

logger = logging.getLogger(__name__)

# Parameter ids declared to the host
PARAM_IP = 1
PARAM_PORT = 2
PARAM_SETTINGS = 3


@dataclass(frozen=True)
class PluginInfo:
    """Plugin metadata reported to the host."""

    name: str
    author: str
    description: str
    version: str


PLUGIN_INFO = PluginInfo(
    name="VDJ Video Sync",
    author="vdj-video-sync",
    description="Sends deck state to an external video sync server",
    version=__version__,
)


class VideoSyncPlugin:
    """Glue between host callbacks and the sampling core.

    Example:
        plugin = VideoSyncPlugin(host)
        plugin.on_load()
        plugin.on_start()   # effect switched on
        plugin.on_stop()    # effect switched off
        plugin.release()
    """

    def __init__(
        self,
        host: HostQuery,
        config: ConfigManager | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            host: Host query interface.
            config: Parameter store (defaults to the user's QSettings).
            dispatcher: Dispatcher to use (created when omitted).
        """
        self._host = host
        self._config = config or ConfigManager()
        self._dispatcher = dispatcher or Dispatcher()
        self._config_sync = ConfigSync(host, self._dispatcher, self._config)
        self._sampler = SamplerLoop(
            host,
            self._dispatcher,
            self._config_sync,
            deck_count=self._config.get_deck_count(),
            poll_interval=self._config.get_poll_interval_ms() / 1000,
        )
        self._watcher = WatcherLoop(
            self._config_sync, interval=self._config.get_watch_interval_ms() / 1000
        )
        self._loaded = False

    @property
    def config_sync(self) -> ConfigSync:
        """Return the config sync."""
        return self._config_sync

    @property
    def dispatcher(self) -> Dispatcher:
        """Return the dispatcher."""
        return self._dispatcher

    @property
    def sampler(self) -> SamplerLoop:
        """Return the sampler."""
        return self._sampler

    @property
    def watcher(self) -> WatcherLoop:
        """Return the config watcher."""
        return self._watcher

    @staticmethod
    def plugin_info() -> PluginInfo:
        """Return plugin metadata."""
        return PLUGIN_INFO

    def on_load(self) -> None:
        """Apply the stored parameters and start watching for edits."""
        endpoint = self._config_sync.load_parameters()
        self._dispatcher.rebind(endpoint)
        self._watcher.start()
        self._loaded = True
        logger.info("%s %s loaded, sending to %s", PLUGIN_INFO.name, PLUGIN_INFO.version, endpoint)

    def on_start(self) -> None:
        """Effect switched on: start sampling."""
        self._sampler.start()

    def on_stop(self) -> None:
        """Effect switched off: stop sampling (waits for the current tick)."""
        self._sampler.stop()

    def on_parameter(self, param_id: int) -> None:
        """Handle a parameter edit from the host's parameter panel."""
        if param_id in (PARAM_IP, PARAM_PORT):
            self._config_sync.load_parameters()
        elif param_id == PARAM_SETTINGS:
            self._config_sync.prompt()
        else:
            logger.debug("Ignoring unknown parameter id %d", param_id)

    def release(self) -> None:
        """Stop both loops and close the dispatcher."""
        self._sampler.stop()
        self._watcher.stop()
        self._dispatcher.close()
        if self._loaded:
            self._config.sync()
            self._loaded = False
        logger.info("%s released", PLUGIN_INFO.name)
