"""Deck state model: one deck's observable state at a sampling instant."""

from dataclasses import dataclass, field

DEFAULT_PITCH = 100.0


@dataclass(frozen=True, slots=True)
class DeckState:
    """Snapshot of a single VirtualDJ deck.

    Two snapshots compare equal when nothing worth sending has changed.
    ``elapsed_ms`` moves on every tick while playing and the metadata fields
    only change together with ``filename``, so they are left out of ``==``.

    Attributes:
        deck: Deck index, 1-based.
        is_audible: Whether the deck is audible at all.
        is_playing: Whether the deck is currently playing.
        volume: Fader volume 0.0-1.0.
        elapsed_ms: Elapsed play position in milliseconds.
        bpm: Current BPM.
        filename: Loaded song filename, empty when nothing is loaded.
        pitch: Pitch in percent, 100.0 is unmodified speed.
        total_time_ms: Song length in milliseconds.
        title: Song title metadata.
        artist: Song artist metadata.
    """

    deck: int
    is_audible: bool = False
    is_playing: bool = False
    volume: float = 0.0
    elapsed_ms: int = field(default=0, compare=False)
    bpm: float = 0.0
    filename: str = ""
    pitch: float = DEFAULT_PITCH
    total_time_ms: int = field(default=0, compare=False)
    title: str = field(default="", compare=False)
    artist: str = field(default="", compare=False)

    @property
    def is_loaded(self) -> bool:
        """Return True if a song is loaded on the deck."""
        return bool(self.filename)

    def mirrors(self, other: "DeckState") -> bool:
        """Return True if this deck reports the same track and transport as another.

        The host echoes a loaded deck's values onto empty decks when the
        effect sits on the master bus; such echoes match on filename and
        play/audible state.
        """
        return (
            self.filename == other.filename
            and self.is_playing == other.is_playing
            and self.is_audible == other.is_audible
        )
