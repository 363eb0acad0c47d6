"""
Static catalog of the furniture sprites players can place.

Pure data: categories and display sizes are derived from the sprite file
names, and image URLs are the file names relative to the asset base URL.
"""

from functools import lru_cache
from typing import List, Optional

from room_design.models.dtos import Asset, AssetCategory

ASSET_FILES = [
    "backpack_1.png", "backpack_2.png", "book.png",
    "bookshelf_1.png", "bookshelf_2.png", "bookshelf_3.png",
    "calendar.png",
    "chair_1.png", "chair_2.png", "chair_3.png", "chair_4.png", "chair_5.png",
    "chalkboard.png", "clock.png", "coffee_machine.png", "cube.png", "cube_2.png", "cup.png",
    "curtain_1.png", "desk.png", "desk_2.png", "lamp.png", "laptop.png", "light_switch.png",
    "mouse.png",
    "plant.png", "plant_1.png", "plant_2.png", "plant_3.png", "plant_4.png",
    "plant_5.png", "plant_6.png", "plant_7.png", "plant_8.png",
    "poster_1.png", "printer.png", "rug_1.png", "rug_2.png", "rug_3.png", "shelf_1.png",
    "student_1.png", "student_2.png", "teacher.png", "to_do.png", "trash.png", "trashcan.png",
]

# Checked in order; the first prefix that matches wins.
CATEGORY_PREFIXES = [
    (("bookshelf",), AssetCategory.BOOKSHELF),
    (("chair",), AssetCategory.CHAIR),
    (("rug",), AssetCategory.RUG),
    (("desk", "shelf", "curtain", "chalkboard"), AssetCategory.FURNITURE),
    (("laptop", "mouse", "coffee_machine", "printer", "light_switch"), AssetCategory.ELECTRONICS),
    (("lamp",), AssetCategory.LIGHTING),
    (("student", "teacher"), AssetCategory.PEOPLE),
]

# Display size by name fragment, largest objects first.
SIZE_RULES = [
    (("bookshelf", "desk"), (320, 320)),
    (("chair", "chalkboard"), (270, 270)),
    (("student", "teacher"), (250, 250)),
    (("rug",), (320, 260)),
    (("plant", "lamp", "clock", "backpack", "printer", "coffee_machine", "trash"), (200, 200)),
    (("laptop", "poster", "calendar", "shelf", "curtain"), (160, 160)),
    (("cup", "mouse", "book", "cube", "light_switch", "to_do"), (120, 120)),
]
DEFAULT_SIZE = (180, 180)


def categorize(filename: str) -> AssetCategory:
    lower = filename.lower()
    for prefixes, category in CATEGORY_PREFIXES:
        if lower.startswith(prefixes):
            return category
    return AssetCategory.DECORATION


def dimensions(filename: str) -> tuple[int, int]:
    lower = filename.lower()
    for fragments, size in SIZE_RULES:
        if any(fragment in lower for fragment in fragments):
            return size
    return DEFAULT_SIZE


def display_name(filename: str) -> str:
    """``coffee_machine.png`` -> ``Coffee Machine``."""
    stem = filename.removesuffix(".png")
    return " ".join(word[:1].upper() + word[1:] for word in stem.split("_"))


def build_asset(filename: str, base_url: str = "") -> Asset:
    url = f"{base_url.rstrip('/')}/{filename}" if base_url else filename
    width, height = dimensions(filename)
    return Asset(
        id=filename.removesuffix(".png"),
        name=display_name(filename),
        category=categorize(filename),
        image_url=url,
        thumbnail_url=url,
        width=width,
        height=height,
    )


@lru_cache()
def load_assets(base_url: str = "") -> tuple[Asset, ...]:
    return tuple(build_asset(filename, base_url) for filename in ASSET_FILES)


def get_asset(asset_id: str, base_url: str = "") -> Optional[Asset]:
    return next((asset for asset in load_assets(base_url) if asset.id == asset_id), None)


def list_assets(
    category: Optional[AssetCategory] = None, query: Optional[str] = None, base_url: str = ""
) -> List[Asset]:
    """Catalog entries, optionally filtered by category and by a case-insensitive name fragment."""
    assets = list(load_assets(base_url))
    if category is not None:
        assets = [asset for asset in assets if asset.category == category]
    if query:
        lowered = query.lower()
        assets = [asset for asset in assets if lowered in asset.name.lower()]
    return assets
