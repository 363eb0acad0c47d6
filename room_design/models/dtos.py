"""
Pydantic records for the room design service.

Stored records are serialized with camelCase aliases so that the JSON written
to the key-value store matches the layout the game client reads.
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
VALID_ROTATIONS = (0, 90, 180, 270)
DEFAULT_BACKGROUND_COLOR = "#FFFFFF"


def is_valid_hex_color(color: str) -> bool:
    return isinstance(color, str) and HEX_COLOR_PATTERN.match(color) is not None


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"

    @property
    def delta(self) -> int:
        """Contribution of this vote to a design's vote count."""
        return 1 if self is VoteType.UPVOTE else -1


class LayerDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class ThemeStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    EXPIRED = "expired"
    ARCHIVED = "archived"


class PlacedAsset(CamelModel):
    """One sprite instance on the canvas, addressed by its position in the design."""

    asset_id: str = Field(..., min_length=1)
    x: int = 0
    y: int = 0
    rotation: int = 0
    z_index: int = Field(0, ge=0)

    @field_validator("rotation")
    @classmethod
    def check_rotation(cls, v: int) -> int:
        if v not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be one of {VALID_ROTATIONS}, got {v}")
        return v


class Design(CamelModel):
    """One room layout."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    theme_id: str = Field(..., min_length=1)
    background_color: str = DEFAULT_BACKGROUND_COLOR
    assets: List[PlacedAsset] = Field(default_factory=list)
    created_at: int
    updated_at: int
    submitted: bool = False
    vote_count: int = 0

    @field_validator("background_color")
    @classmethod
    def check_background_color(cls, v: str) -> str:
        if not is_valid_hex_color(v):
            raise ValueError(f"background color must match #RRGGBB, got {v!r}")
        return v

    @model_validator(mode="after")
    def check_timestamps(self) -> "Design":
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        return self

    def next_z_index(self) -> int:
        """z-index for a newly placed asset: one above the current top, 0 when empty."""
        if not self.assets:
            return 0
        return max(asset.z_index for asset in self.assets) + 1


class Theme(CamelModel):
    """A timeboxed design prompt."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    start_time: int
    end_time: int
    active: bool = False

    @model_validator(mode="after")
    def check_window(self) -> "Theme":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class Vote(CamelModel):
    """One user's current stance on one design."""

    user_id: str
    design_id: str
    vote_type: VoteType
    timestamp: int


class LeaderboardEntry(CamelModel):
    """Derived ranking row; username and voteCount mirror the design."""

    rank: int = Field(..., ge=1)
    design: Design
    username: str
    vote_count: int


class AuthenticatedUser(CamelModel):
    id: str
    username: str


class AssetCategory(str, Enum):
    BOOKSHELF = "bookshelf"
    CHAIR = "chair"
    DECORATION = "decoration"
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"
    LIGHTING = "lighting"
    PEOPLE = "people"
    RUG = "rug"


class Asset(CamelModel):
    """Catalog entry describing one sprite file."""

    id: str
    name: str
    category: AssetCategory
    image_url: str
    thumbnail_url: str
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


# --- API request bodies ---

class CreateDesignRequest(CamelModel):
    theme_id: Optional[str] = None


class SaveDesignRequest(CamelModel):
    design: Design


class SubmitDesignRequest(CamelModel):
    design_id: str


class VoteRequest(CamelModel):
    design_id: str
    vote_type: Optional[VoteType] = None


class PlaceAssetRequest(CamelModel):
    asset_id: str = Field(..., min_length=1)
    x: int
    y: int


class MoveAssetRequest(CamelModel):
    x: int
    y: int


class LayerRequest(CamelModel):
    direction: str


class BackgroundColorRequest(CamelModel):
    color: str


# --- API responses ---

class InitResponse(CamelModel):
    theme: Optional[Theme] = None
    time_remaining: int = 0
    user_id: Optional[str] = None
    username: str = "anonymous"
    authenticated: bool = False
    has_submitted: bool = False


class SubmitDesignResponse(CamelModel):
    design_id: str
    status: str = "submitted"


class GalleryResponse(CamelModel):
    theme_id: str
    designs: List[Design]
    limit: int
    offset: int


class VoteResponse(CamelModel):
    design_id: str
    vote_count: int
    user_vote: Optional[VoteType] = None


class LeaderboardResponse(CamelModel):
    theme_id: str
    entries: List[LeaderboardEntry]
    user_rank: Optional[int] = None
