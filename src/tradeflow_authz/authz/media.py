"""
tradeflow_authz.authz.media

Image and datasheet bucket visibility.

Responsibilities:
- Map allowed product categories onto the fixed image/datasheet buckets used by
  the gallery and datasheet uploads.

Product category names are free text (English or Arabic), so buckets are matched
by keyword rather than by id.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from typing import Any

from tradeflow_authz.authz.models import AuthorizationView


class ImageCategory(enum.StrEnum):
    generator = "generator"
    equipment = "equipment"
    tractor = "tractor"


_KEYWORDS: dict[ImageCategory, tuple[str, ...]] = {
    ImageCategory.generator: ("generator", "مولد"),
    ImageCategory.equipment: ("equipment", "معد"),
    ImageCategory.tractor: ("tractor", "حراث"),
}


def image_categories_for_name(name: str) -> frozenset[ImageCategory]:
    lowered = name.lower()
    return frozenset(
        bucket for bucket, words in _KEYWORDS.items() if any(w in lowered for w in words)
    )


def allowed_image_categories(view: AuthorizationView) -> frozenset[ImageCategory]:
    if view.scope.degraded:
        return frozenset()
    if not view.has_restrictions:
        return frozenset(ImageCategory)
    allowed: set[ImageCategory] = set()
    for category in view.scope.allowed_categories:
        allowed |= image_categories_for_name(category.name)
    return frozenset(allowed)


def filter_images(
    images: Iterable[Mapping[str, Any]], view: AuthorizationView, *, key: str = "category"
) -> list[Mapping[str, Any]]:
    if view.scope.degraded:
        return []
    if not view.has_restrictions:
        return list(images)
    buckets = allowed_image_categories(view)
    return [img for img in images if img.get(key) in buckets]


# --- Module Notes -----------------------------------------------------------
# Buckets are stored as plain strings on image rows; StrEnum members compare equal to them.
