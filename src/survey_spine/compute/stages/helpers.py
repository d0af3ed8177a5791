"""Small numeric and identity helpers shared by the stages."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from survey_spine.core.models import BucketId, Option


def round_to(value: float | int, places: int = 2) -> float | int:
    """Round half-up to ``places`` decimals; integers pass through."""
    if isinstance(value, int):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float) -> float:
    """``part / whole`` as a percentage rounded to 2 decimals (0 if whole is 0)."""
    if not whole:
        return 0
    return round_to(part / whole * 100)


def bucket_key(bucket_id: BucketId) -> str:
    """Comparable form of an id (option ids and bucket ids may differ in type)."""
    return str(bucket_id)


def option_index(options: tuple[Option, ...] | list[Option] | None) -> dict[str, int]:
    return {bucket_key(o.id): i for i, o in enumerate(options or ())}


def find_option(options: tuple[Option, ...] | list[Option] | None, bucket_id: BucketId) -> Option | None:
    key = bucket_key(bucket_id)
    return next((o for o in options or () if bucket_key(o.id) == key), None)
