"""Card edits that go through validation and the lot's lock."""

import logging
import sqlite3
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from card_lots.db.connection import lot_lock, transaction
from card_lots.db.models import CardItem, CardRepository
from card_lots.errors import InvalidConfiguration
from card_lots.services.titles import generate_title
from card_lots.services.validation import validate_card_changes
from card_lots.utils import new_id
from card_lots.vocab import GRADED_CONDITION_TYPE

log = logging.getLogger(__name__)


def _sync_legacy_graded(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the legacy graded flag in step when condition_type is set."""
    if "condition_type" in changes and "graded" not in changes:
        changes = dict(changes, graded=changes["condition_type"] == GRADED_CONDITION_TYPE)
    return changes


def update_card(conn: sqlite3.Connection, card_id: str, changes: Dict[str, Any]) -> CardItem:
    """Validate and apply a partial update to one card."""
    validate_card_changes(changes)
    changes = _sync_legacy_graded(changes)
    card = CardRepository(conn).require(card_id)
    with lot_lock(card.lot_id):
        with transaction(conn):
            card = CardRepository(conn).apply_changes(card_id, changes)
    log.debug("Updated card %s: %s", card_id, ", ".join(sorted(changes)))
    return card


def bulk_update(conn: sqlite3.Connection, lot_id: str, card_ids: Sequence[str],
                changes: Dict[str, Any]) -> List[CardItem]:
    """
    Apply the same changes to several cards of a lot, all or nothing.

    Raises:
        InvalidConfiguration: invalid values, or a card belongs to another lot
        CardNotFound: an id matches no card
    """
    validate_card_changes(changes)
    changes = _sync_legacy_graded(changes)
    repo = CardRepository(conn)
    with lot_lock(lot_id):
        with transaction(conn):
            foreign = [card_id for card_id in card_ids if repo.require(card_id).lot_id != lot_id]
            if foreign:
                raise InvalidConfiguration(
                    f"Card(s) not in lot {lot_id}: {', '.join(foreign)}", fields=["card_ids"]
                )
            cards = [repo.apply_changes(card_id, changes) for card_id in card_ids]
    log.info("Updated %d card(s) in lot %s", len(cards), lot_id)
    return cards


def auto_title(conn: sqlite3.Connection, card_id: str) -> CardItem:
    """Store the title generated from the card's fields."""
    card = CardRepository(conn).require(card_id)
    title = generate_title(replace(card, title=None))
    return update_card(conn, card_id, {"title": title})


def clone_card(conn: sqlite3.Connection, card_id: str) -> CardItem:
    """
    Copy a card with all fields and image references.

    The copy gets new ids, status "Draft", and goes to the end of the lot.
    Image files are shared with the source card.
    """
    repo = CardRepository(conn)
    source = repo.require(card_id)
    with lot_lock(source.lot_id):
        with transaction(conn):
            current_max = repo.max_sort_order(source.lot_id)
            clone_id = new_id()
            clone = replace(
                source,
                id=clone_id,
                status="Draft",
                sort_order=(current_max or 0) + 1,
                created_at=None,
                images=[
                    replace(img, id=new_id(), card_item_id=clone_id)
                    for img in source.images
                ],
            )
            repo.insert_card(clone)
    log.info("Cloned card %s as %s", card_id, clone.id)
    return clone


def delete_card(conn: sqlite3.Connection, card_id: str) -> None:
    repo = CardRepository(conn)
    card = repo.require(card_id)
    with lot_lock(card.lot_id):
        with transaction(conn):
            repo.delete(card_id)


def move_image(conn: sqlite3.Connection, image_id: str, target_card_id: str,
               position: Optional[int] = None) -> CardItem:
    """
    Move an image onto a card of the same lot at the given position.

    Returns the target card. Moves across lots raise InvalidConfiguration.
    """
    repo = CardRepository(conn)
    target = repo.require(target_card_id)
    with lot_lock(target.lot_id):
        with transaction(conn):
            source = repo.require(repo.image_owner(image_id))
            if source.lot_id != target.lot_id:
                raise InvalidConfiguration(
                    f"Image {image_id} belongs to another lot", fields=["image_id"]
                )
            repo.move_image(image_id, target_card_id, position)
    return repo.require(target_card_id)


def reorder_images(conn: sqlite3.Connection, card_id: str, image_ids: Sequence[str]) -> CardItem:
    """Set a card's image order. image_ids must be exactly the card's images."""
    repo = CardRepository(conn)
    card = repo.require(card_id)
    if sorted(image_ids) != sorted(img.id for img in card.images):
        raise InvalidConfiguration(
            "Image list must contain exactly the card's images", fields=["image_ids"]
        )
    with lot_lock(card.lot_id):
        with transaction(conn):
            repo.reorder_images(card_id, list(image_ids))
    return repo.require(card_id)
