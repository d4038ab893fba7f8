"""Listing title generation."""

import re

from card_lots.utils import is_blank

UNTITLED = "Untitled Card"

# eBay's *Title column accepts at most this many characters
EBAY_TITLE_LIMIT = 80


def generate_title(card) -> str:
    """
    Return the card's listing title.

    A manual title wins (trimmed). Otherwise: year, set, name, #number,
    subset/parallel, skipping blanks, single-spaced. Never empty; not
    truncated here since the editor shows the full value.

    Example:
        2024 Topps Mike Trout #27 Refractor
    """
    if not is_blank(card.title):
        return card.title.strip()

    parts = []
    if card.year is not None and not is_blank(str(card.year)):
        parts.append(str(card.year))
    if not is_blank(card.set_name):
        parts.append(card.set_name)
    if not is_blank(card.name):
        parts.append(card.name)
    if not is_blank(card.card_number):
        parts.append(f"#{card.card_number.strip()}")
    if not is_blank(card.subset_parallel):
        parts.append(card.subset_parallel)

    title = re.sub(r"\s+", " ", " ".join(parts)).strip()
    return title or UNTITLED


def truncate_title(title: str, limit: int = EBAY_TITLE_LIMIT) -> str:
    """Cut a title to the channel's display limit."""
    return title[:limit]
