"""
Image reference resolution for a style+color aggregate.
"""

from typing import Mapping, Sequence

from aged_inventory.schemas.aged_inventory import RawInventoryRow


def resolve_image_url(rows: Sequence[RawInventoryRow], style: str, catalog_images: Mapping[str, str]) -> str:
    """
    Pick the image URL for a group.

    A CAD link carried by the report itself wins (the last non-blank one in
    input order), then the catalog cross-reference for the style, else "".
    """
    image_url = ""
    for row in rows:
        link = row.image_link.strip()
        if link:
            image_url = link
    if image_url:
        return image_url
    return catalog_images.get(style, "") or ""
