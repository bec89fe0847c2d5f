"""Core sampling, dispatch scheduling and configuration logic.

Classes:
    ConfigManager: QSettings wrapper for the plugin parameters.
    ConfigSync: Reconciles the endpoint with the host's editable stores.
    SamplerLoop: Polls decks and sends state changes.
    WatcherLoop: Reconciles configuration while sampling is off.
    VideoSyncPlugin: Host lifecycle adapter.
"""

from vdjsync.core.config import ConfigManager
from vdjsync.core.config_sync import ConfigSync
from vdjsync.core.host import HostQuery, MemoryHost, read_deck_state
from vdjsync.core.plugin import VideoSyncPlugin
from vdjsync.core.sampler import SamplerLoop, find_mirrored_decks
from vdjsync.core.watcher import WatcherLoop

__all__ = [
    "ConfigManager",
    "ConfigSync",
    "HostQuery",
    "MemoryHost",
    "SamplerLoop",
    "VideoSyncPlugin",
    "WatcherLoop",
    "find_mirrored_decks",
    "read_deck_state",
]
