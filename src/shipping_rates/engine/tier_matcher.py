"""
Tier Matcher - Selects the weight tier that applies to a shipment.

Tiers are scanned in ascending order of their lower bound; the first tier
with ``min <= weight`` and ``weight < max`` (or no max) wins, so a weight
sitting exactly on a boundary belongs to the upper tier.
"""
from decimal import Decimal
from typing import Iterable, Optional

from .models import WeightTier


def match_tier(tiers: Iterable[WeightTier], weight_grams: Decimal) -> Optional[WeightTier]:
    """Return the first tier containing the weight, or None."""
    for tier in sorted(tiers, key=lambda t: t.min_grams):
        if tier.contains(weight_grams):
            return tier
    return None
