"""Tests for catalog data contracts."""

import pytest
from pydantic import ValidationError

from game_catalog_sync.contracts import (
    CacheMetadata,
    CatalogSource,
    FetchMetadata,
    FetchResult,
    GameEntry,
    Orientation,
)


class TestGameEntry:
    """Tests for GameEntry model."""

    def test_wire_names(self) -> None:
        """Test parsing the wire field names."""
        game = GameEntry.model_validate(
            {
                "id": "g1",
                "title": "Game",
                "image": "https://img.test/g1.png",
                "url": "https://play.test/g1",
                "preferredOrientation": "landscape",
                "disabledReason": "Maintenance",
                "enabled": False,
            }
        )

        assert game.image_url == "https://img.test/g1.png"
        assert game.play_url == "https://play.test/g1"
        assert game.orientation is Orientation.LANDSCAPE
        assert game.disabled_reason == "Maintenance"
        assert game.is_enabled is False

    def test_alternate_names(self) -> None:
        """Test parsing the descriptive field names."""
        game = GameEntry.model_validate(
            {
                "id": "g1",
                "title": "Game",
                "imageUrl": "https://img.test/g1.png",
                "playUrl": "https://play.test/g1",
            }
        )

        assert game.image_url == "https://img.test/g1.png"
        assert game.play_url == "https://play.test/g1"

    def test_enabled_by_default(self) -> None:
        """Test that a missing enabled flag means enabled."""
        game = GameEntry(id="g1", title="Game", image="https://i.test/a", url="https://p.test/a")

        assert game.enabled is None
        assert game.is_enabled is True

    def test_to_wire_omits_unset(self) -> None:
        """Test wire serialization uses wire names and drops None fields."""
        game = GameEntry(
            id="g1",
            title="Game",
            image="https://i.test/a",
            url="https://p.test/a",
            preferredOrientation="portrait",
        )

        assert game.to_wire() == {
            "id": "g1",
            "title": "Game",
            "image": "https://i.test/a",
            "url": "https://p.test/a",
            "preferredOrientation": "portrait",
        }

    def test_wire_roundtrip(self) -> None:
        """Test that to_wire output parses back to an equal entry."""
        game = GameEntry(
            id="g1",
            title="Game",
            image="https://i.test/a",
            url="https://p.test/a",
            category="arcade",
            enabled=False,
            disabledReason="Soon",
        )

        assert GameEntry.model_validate(game.to_wire()) == game

    def test_missing_required_field(self) -> None:
        """Test that a missing URL is rejected."""
        with pytest.raises(ValidationError):
            GameEntry.model_validate({"id": "g1", "title": "Game", "image": "https://i.test/a"})

    def test_title_length_limit(self) -> None:
        """Test that overlong titles are rejected by the model."""
        with pytest.raises(ValidationError):
            GameEntry(id="g1", title="x" * 201, image="https://i.test/a", url="https://p.test/a")

    def test_frozen(self) -> None:
        """Test that entries are immutable."""
        game = GameEntry(id="g1", title="Game", image="https://i.test/a", url="https://p.test/a")

        with pytest.raises(ValidationError):
            game.title = "Other"  # type: ignore[misc]


class TestResults:
    """Tests for result and metadata models."""

    def test_fetch_result(self) -> None:
        """Test building a fetch result."""
        game = GameEntry(id="g1", title="Game", image="https://i.test/a", url="https://p.test/a")
        result = FetchResult(
            games=[game],
            source=CatalogSource.CACHED,
            metadata=FetchMetadata(fetch_time_ms=12.5, from_cache=True, etag='"v1"'),
        )

        assert result.source.value == "cached"
        assert result.metadata.from_cache is True
        assert result.metadata.etag == '"v1"'

    def test_negative_fetch_time_rejected(self) -> None:
        """Test that fetch time cannot be negative."""
        with pytest.raises(ValidationError):
            FetchMetadata(fetch_time_ms=-1)

    def test_cache_metadata_defaults(self) -> None:
        """Test cache metadata default source and validation."""
        metadata = CacheMetadata(last_fetch_timestamp_ms=1_700_000_000_000)

        assert metadata.source is CatalogSource.REMOTE
        assert metadata.validation.passed is True
        assert metadata.validation.errors == []
