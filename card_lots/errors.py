"""Typed failures raised by the grouping and export core."""

from typing import Dict, List, Optional


class CardLotsError(Exception):
    """Base class for all errors the CLI translates into a user message."""


class InvalidConfiguration(CardLotsError, ValueError):
    """A setting or profile value makes the operation impossible."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class NotReadyForExport(CardLotsError):
    """One or more cards are missing fields required by the listing channel."""

    def __init__(self, missing: Dict[str, List[str]], total: int):
        self.missing = missing
        self.total = total
        super().__init__(
            f"{len(missing)} of {total} cards missing required fields"
        )

    def describe(self) -> List[str]:
        """One line per incomplete card: '<card id>: field, field'."""
        return [f"{card_id}: {', '.join(fields)}" for card_id, fields in self.missing.items()]


class MappingAmbiguity(CardLotsError):
    """A card's condition type is neither the graded nor the ungraded value."""

    def __init__(self, offending: Dict[str, str]):
        self.offending = offending
        listed = ", ".join(f"{cid} ({value!r})" for cid, value in offending.items())
        super().__init__(f"Unrecognized condition type on card(s): {listed}")

    @property
    def card_ids(self) -> List[str]:
        return list(self.offending)


class SerializationFailure(CardLotsError):
    """A value assumed present was missing while building a CSV row."""

    def __init__(self, card_id: Optional[str], column: str, detail: str = "value is missing"):
        self.card_id = card_id
        self.column = column
        super().__init__(f"Cannot serialize column '{column}' for card {card_id}: {detail}")


class LotNotFound(CardLotsError, LookupError):
    """No lot with the given id."""


class CardNotFound(CardLotsError, LookupError):
    """No card with the given id."""
