"""VDJ Video Sync - streams VirtualDJ deck state to a video sync server."""

__version__ = "0.2.0"
