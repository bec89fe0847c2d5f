"""Tests for the host query helpers and MemoryHost."""

from unittest.mock import MagicMock

from vdjsync.core.host import (
    VAR_SERVER_IP,
    MemoryHost,
    deck_query,
    read_deck_state,
)
from vdjsync.models.deck_state import DeckState


class TestDeckQuery:
    """Tests for deck_query."""

    def test_format(self) -> None:
        """Test deck-prefixed query strings."""
        assert deck_query(2, "get_bpm") == "deck 2 get_bpm"
        assert deck_query(1, "get_time elapsed absolute") == "deck 1 get_time elapsed absolute"


class TestReadDeckState:
    """Tests for read_deck_state."""

    def test_reads_all_fields(self, host: MemoryHost) -> None:
        """Test a fully loaded deck is read back field for field."""
        loaded = DeckState(
            deck=1,
            is_audible=True,
            is_playing=True,
            volume=0.5,
            elapsed_ms=12_345,
            bpm=126.0,
            filename="track.mp3",
            pitch=102.0,
            total_time_ms=200_000,
            title="Track",
            artist="Artist",
        )
        host.load_deck(loaded)

        state = read_deck_state(host, 1)
        assert state == loaded
        assert state.elapsed_ms == 12_345
        assert state.total_time_ms == 200_000
        assert state.title == "Track"
        assert state.artist == "Artist"

    def test_unavailable_fields_use_defaults(self, host: MemoryHost) -> None:
        """Test an empty host yields a default state."""
        state = read_deck_state(host, 3)
        assert state == DeckState(deck=3)
        assert state.pitch == 100.0

    def test_single_missing_field(self, host: MemoryHost) -> None:
        """Test one missing value does not affect the others."""
        host.load_deck(DeckState(deck=1, volume=0.9, bpm=120.0, filename="a.mp3", pitch=97.0))
        host.set_info(deck_query(1, "get_pitch_value"), None)

        state = read_deck_state(host, 1)
        assert state.pitch == 100.0
        assert state.volume == 0.9
        assert state.filename == "a.mp3"

    def test_host_exceptions_are_contained(self) -> None:
        """Test a host raising on a query still yields a state."""
        host = MagicMock()
        host.get_info.side_effect = RuntimeError("host busy")
        host.get_string_info.return_value = "a.mp3"

        state = read_deck_state(host, 2)
        assert state.deck == 2
        assert state.filename == "a.mp3"
        assert state.is_playing is False
        assert state.pitch == 100.0

    def test_nonzero_values_are_true(self, host: MemoryHost) -> None:
        """Test boolean queries treat any non-zero value as True."""
        host.set_info(deck_query(1, "play"), 0.5)
        host.set_info(deck_query(1, "is_audible"), -1.0)
        state = read_deck_state(host, 1)
        assert state.is_playing is True
        assert state.is_audible is True

    def test_non_finite_values_use_defaults(self, host: MemoryHost) -> None:
        """Test NaN and infinite readings fall back to field defaults."""
        host.load_deck(DeckState(deck=1, is_playing=True, bpm=124.0, filename="a.mp3"))
        host.set_info(deck_query(1, "get_songlength"), float("inf"))
        host.set_info(deck_query(1, "get_time elapsed absolute"), float("nan"))
        host.set_info(deck_query(1, "get_volume"), float("-inf"))
        host.set_info(deck_query(1, "get_pitch_value"), float("nan"))

        state = read_deck_state(host, 1)
        assert state.total_time_ms == 0
        assert state.elapsed_ms == 0
        assert state.volume == 0.0
        assert state.pitch == 100.0
        assert state.bpm == 124.0
        assert state.is_playing is True

    def test_nan_reading_compares_equal_across_reads(self, host: MemoryHost) -> None:
        """Test a persistent NaN reading does not make a deck look changed."""
        host.load_deck(DeckState(deck=1, filename="a.mp3"))
        host.set_info(deck_query(1, "get_bpm"), float("nan"))
        assert read_deck_state(host, 1) == read_deck_state(host, 1)


class TestMemoryHost:
    """Tests for MemoryHost."""

    def test_variables(self, host: MemoryHost) -> None:
        """Test variable get/set."""
        assert host.get_variable(VAR_SERVER_IP) is None
        host.set_variable(VAR_SERVER_IP, "10.0.0.1")
        assert host.get_variable(VAR_SERVER_IP) == "10.0.0.1"

    def test_commands_and_prompts_recorded(self, host: MemoryHost) -> None:
        """Test commands and prompts are recorded in order."""
        host.send_command("deck 1 play")
        host.prompt_variable(VAR_SERVER_IP, "IP")
        assert host.commands == ["deck 1 play"]
        assert host.prompts == [(VAR_SERVER_IP, "IP")]

    def test_unload_deck(self, host: MemoryHost) -> None:
        """Test unloading removes only that deck's values."""
        host.load_deck(DeckState(deck=1, filename="a.mp3"))
        host.load_deck(DeckState(deck=2, filename="b.mp3"))
        host.unload_deck(1)

        assert read_deck_state(host, 1) == DeckState(deck=1)
        assert read_deck_state(host, 2).filename == "b.mp3"

    def test_set_string_info(self, host: MemoryHost) -> None:
        """Test setting and removing string values."""
        host.set_string_info("get_version", "8.5")
        assert host.get_string_info("get_version") == "8.5"
        host.set_string_info("get_version", None)
        assert host.get_string_info("get_version") is None
