"""
Price Resolver Service
Looks up the configured tariff for a (study, insurer) pair
"""

from typing import Iterable, Optional, Sequence

from src.models.schemas import DocumentEntry, Tarifa


def resolve_price(
    study_id: str,
    obra_social_id: str,
    tarifas: Sequence[Tarifa]
) -> Optional[float]:
    """
    Get the price for a study billed to an insurer

    Args:
        study_id: Resolved study id ("" when unresolved)
        obra_social_id: Resolved insurer id ("" when unresolved)
        tarifas: Price table snapshot

    Returns:
        Price of the first matching row, or None when either id is empty or
        no tariff is configured for the pair (never 0 by default)
    """
    if not study_id or not obra_social_id:
        return None

    for tarifa in tarifas:
        if tarifa.estudio_id == study_id and tarifa.obra_social_id == obra_social_id:
            return tarifa.precio

    return None


def total_amount(entries: Iterable[DocumentEntry]) -> float:
    """Sum of resolved prices; entries without a price count as 0"""
    return sum((entry.precio or 0.0 for entry in entries), 0.0)
