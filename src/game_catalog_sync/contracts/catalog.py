"""
Data contracts for catalog entries.

These Pydantic models define a single playable game as it appears
in the remote, cached, and bundled catalogs.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Field length limits shared with the validator
MAX_ID_LENGTH = 100
MAX_TITLE_LENGTH = 200
MAX_URL_LENGTH = 500
MAX_CATEGORY_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 1000
MAX_DISABLED_REASON_LENGTH = 500

MAX_CATALOG_SIZE = 1000


class Orientation(str, Enum):
    """Preferred screen orientation for a game."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class GameEntry(BaseModel):
    """
    A single game in the catalog.

    Accepts both the wire names (``image``, ``url``, ``preferredOrientation``)
    and the descriptive ones, and serializes back to the wire names.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    image_url: str = Field(
        ...,
        min_length=1,
        max_length=MAX_URL_LENGTH,
        validation_alias=AliasChoices("image", "imageUrl", "image_url"),
        serialization_alias="image",
    )
    play_url: str = Field(
        ...,
        min_length=1,
        max_length=MAX_URL_LENGTH,
        validation_alias=AliasChoices("url", "playUrl", "play_url"),
        serialization_alias="url",
    )
    orientation: Orientation | None = Field(
        default=None,
        validation_alias=AliasChoices("preferredOrientation", "orientation"),
        serialization_alias="preferredOrientation",
    )
    category: str | None = Field(default=None, max_length=MAX_CATEGORY_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    enabled: bool | None = Field(default=None, description="None means enabled")
    disabled_reason: str | None = Field(
        default=None,
        max_length=MAX_DISABLED_REASON_LENGTH,
        validation_alias=AliasChoices("disabledReason", "disabled_reason"),
        serialization_alias="disabledReason",
    )

    @property
    def is_enabled(self) -> bool:
        """Games are enabled unless explicitly disabled."""
        return self.enabled is not False

    def to_wire(self) -> dict[str, Any]:
        """Serialize using wire field names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
