"""
Entry List
Editable list of billing entries; keeps each entry's price in line with its
study and insurer
"""

import logging
from typing import Iterable, List, Optional, Sequence

from src.models.schemas import DocumentEntry, Tarifa
from src.services.price_resolver import resolve_price, total_amount

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("study_id", "obra_social_id")

EDITABLE_FIELDS = (
    "doctor_id",
    "study_id",
    "obra_social_id",
    "patient_name",
    "insurance",
    "carnet",
    "age",
    "surgeon",
    "practice",
    "date",
    "operation_description",
)


class EntryList:
    """
    Billing entries of the current session

    Editing study_id or obra_social_id recomputes precio right away against
    the current price table.
    """

    def __init__(self, tarifas: Sequence[Tarifa] = ()):
        self.tarifas: List[Tarifa] = list(tarifas)
        self.entries: List[DocumentEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def add(self, entry: DocumentEntry) -> DocumentEntry:
        self.entries.append(entry)
        return entry

    def extend(self, entries: Iterable[DocumentEntry]) -> None:
        self.entries.extend(entries)

    def get(self, entry_id: str) -> Optional[DocumentEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def update_entry(self, entry_id: str, field: str, value: str) -> DocumentEntry:
        """
        Apply a user edit to one entry

        Args:
            entry_id: Entry to edit
            field: One of EDITABLE_FIELDS
            value: New value

        Returns:
            The updated entry

        Raises:
            KeyError: If the entry doesn't exist
            ValueError: If the field can't be edited
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' cannot be edited")

        entry = self.get(entry_id)
        if entry is None:
            raise KeyError(f"Entry {entry_id} not found")

        setattr(entry, field, value)

        if field in PRICE_FIELDS:
            entry.precio = resolve_price(entry.study_id, entry.obra_social_id, self.tarifas)
            logger.debug(
                "Price recomputed",
                extra={"entry_id": entry_id, "precio": entry.precio}
            )

        return entry

    def remove(self, entry_id: str) -> None:
        self.entries = [entry for entry in self.entries if entry.id != entry_id]

    def clear(self) -> None:
        self.entries = []

    def replace_tarifas(self, tarifas: Sequence[Tarifa]) -> None:
        """Swap in a freshly fetched price table and reprice every entry"""
        self.tarifas = list(tarifas)
        for entry in self.entries:
            entry.precio = resolve_price(entry.study_id, entry.obra_social_id, self.tarifas)

    def total(self) -> float:
        return total_amount(self.entries)
