"""Graded/ungraded field resolution and export readiness.

condition_type is the one source of truth for whether a card is graded.
The boolean ``graded`` column predates it and is only passed through to
the raw export.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from card_lots.errors import MappingAmbiguity, NotReadyForExport
from card_lots.utils import is_blank
from card_lots.vocab import (
    CARD_CONDITION_CODES,
    GRADED_CONDITION_TYPE,
    UNGRADED_CONDITION_TYPE,
)

log = logging.getLogger(__name__)

# eBay ConditionID values for trading cards
GRADED_CONDITION_ID = "2750"
UNGRADED_CONDITION_ID = "4000"

FALLBACK_CONDITION_CODE = next(iter(CARD_CONDITION_CODES.values()))

# Required on every card, in the order they are reported
MANDATORY_FIELDS = (
    "images", "title", "sale_price", "year", "condition_type", "category",
    "brand", "set_name", "name", "card_number", "subset_parallel",
)
GRADED_REQUIRED_FIELDS = ("grader", "grade")
UNGRADED_REQUIRED_FIELDS = ("condition",)


@dataclass(frozen=True)
class ConditionFields:
    """Condition columns for one card, with the inactive branch blanked."""
    condition_id: str
    graded: str            # "Yes" / "No"
    grader: str
    grade: str
    cert_no: str
    card_condition_code: str


def is_graded(card) -> bool:
    """True when the card's condition type is the professionally-graded value."""
    return card.condition_type == GRADED_CONDITION_TYPE


def is_recognized_condition_type(value) -> bool:
    return value in (GRADED_CONDITION_TYPE, UNGRADED_CONDITION_TYPE)


def card_condition_code(card) -> str:
    """
    Map an ungraded card's condition descriptor to eBay's value id.

    Unset or unknown text maps to the first (best) descriptor. That is a
    guess on the seller's behalf, so it is logged as a warning.
    """
    code = CARD_CONDITION_CODES.get((card.condition or "").strip())
    if code is None:
        log.warning(
            "Card %s has condition %r; exporting as %s (best condition)",
            card.id, card.condition, FALLBACK_CONDITION_CODE,
        )
        return FALLBACK_CONDITION_CODE
    return code


def resolve_condition_fields(card) -> ConditionFields:
    """
    Produce the graded and ungraded condition values for a card.

    Only the branch matching the card's condition type is filled; the
    other branch comes back blank even if the record holds stale values.

    Raises:
        MappingAmbiguity: condition_type is neither graded nor ungraded
    """
    if card.condition_type == GRADED_CONDITION_TYPE:
        return ConditionFields(
            condition_id=GRADED_CONDITION_ID,
            graded="Yes",
            grader=(card.grader or "").strip(),
            grade=(card.grade or "").strip(),
            cert_no=(card.cert_no or "").strip(),
            card_condition_code="",
        )
    if card.condition_type == UNGRADED_CONDITION_TYPE:
        return ConditionFields(
            condition_id=UNGRADED_CONDITION_ID,
            graded="No",
            grader="",
            grade="",
            cert_no="",
            card_condition_code=card_condition_code(card),
        )
    raise MappingAmbiguity({card.id: card.condition_type})


def missing_fields(card) -> List[str]:
    """
    Names of required fields that are blank or invalid on this card.

    A condition type outside the two recognized values counts as missing.
    The branch-specific requirements follow the condition type: grader and
    grade when graded, the condition descriptor when ungraded.
    """
    missing = []
    for name in MANDATORY_FIELDS:
        if name == "images":
            if not card.images:
                missing.append(name)
        elif is_blank(getattr(card, name)):
            missing.append(name)
        elif name == "condition_type" and not is_recognized_condition_type(card.condition_type):
            missing.append(name)

    if is_blank(card.condition_type) or is_recognized_condition_type(card.condition_type):
        branch = GRADED_REQUIRED_FIELDS if is_graded(card) else UNGRADED_REQUIRED_FIELDS
        missing.extend(name for name in branch if is_blank(getattr(card, name)))
    return missing


def is_ready(card) -> bool:
    """True when the card can be exported to eBay as-is."""
    return not missing_fields(card)


def readiness_report(cards: Sequence) -> Dict[str, List[str]]:
    """Map of card id -> missing fields, for incomplete cards only."""
    report = {}
    for card in cards:
        missing = missing_fields(card)
        if missing:
            report[card.id] = missing
    return report


def check_cards_ready(cards: Sequence) -> None:
    """
    Validate a whole lot before export.

    Raises:
        MappingAmbiguity: some card has an unrecognized condition type
        NotReadyForExport: some card is missing required fields
    """
    ambiguous = {
        card.id: card.condition_type
        for card in cards
        if not is_blank(card.condition_type) and not is_recognized_condition_type(card.condition_type)
    }
    if ambiguous:
        raise MappingAmbiguity(ambiguous)

    report = readiness_report(cards)
    if report:
        raise NotReadyForExport(report, total=len(cards))
