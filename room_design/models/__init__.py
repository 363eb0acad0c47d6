"""
Models package for the room design service.

This package contains SQLAlchemy ORM models and Pydantic records.
"""

from .base import Base
from .kv_orm import KVCounterORM, KVEntryORM, KVSetMemberORM, KVSortedMemberORM

from .dtos import (
    Asset,
    AssetCategory,
    AuthenticatedUser,
    Design,
    LayerDirection,
    LeaderboardEntry,
    PlacedAsset,
    Theme,
    ThemeStatus,
    Vote,
    VoteType,
)

__all__ = [
    # Base
    "Base",
    # ORMs
    "KVCounterORM",
    "KVEntryORM",
    "KVSetMemberORM",
    "KVSortedMemberORM",
    # Records
    "Asset",
    "AssetCategory",
    "AuthenticatedUser",
    "Design",
    "LayerDirection",
    "LeaderboardEntry",
    "PlacedAsset",
    "Theme",
    "ThemeStatus",
    "Vote",
    "VoteType",
]
