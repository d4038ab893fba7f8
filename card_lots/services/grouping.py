"""Partition uploaded images into cards, and regroup a lot's images."""

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from typing import List, Sequence

from card_lots.db.connection import lot_lock, transaction
from card_lots.db.models import CardImage, CardItem, CardRepository, LotRepository
from card_lots.errors import InvalidConfiguration
from card_lots.services.natural_sort import natural_sorted
from card_lots.utils import new_id

log = logging.getLogger(__name__)


def check_group_size(images_per_card) -> None:
    """Raise InvalidConfiguration unless images_per_card is a positive integer."""
    if isinstance(images_per_card, bool) or not isinstance(images_per_card, int) or images_per_card <= 0:
        raise InvalidConfiguration(
            f"Images per card must be a positive integer, got {images_per_card!r}",
            fields=["images_per_card"],
        )


@dataclass
class CardGroup:
    """A new card's id plus its images, positions renumbered from 0."""
    card_id: str
    images: List[CardImage] = field(default_factory=list)


def group_images(images: Sequence[CardImage], images_per_card: int) -> List[CardGroup]:
    """
    Group images into cards of images_per_card each.

    Images are ordered by filename (natural sort) first; the last card may
    hold fewer images. Each image keeps its id and storage references and
    gets sort_order = its index within the card.

    Raises:
        InvalidConfiguration: images_per_card is not a positive integer
    """
    check_group_size(images_per_card)

    ordered = natural_sorted(images, key=lambda img: img.filename)
    groups = []
    for start in range(0, len(ordered), images_per_card):
        chunk = ordered[start:start + images_per_card]
        groups.append(
            CardGroup(
                card_id=new_id(),
                images=[replace(img, sort_order=idx) for idx, img in enumerate(chunk)],
            )
        )

    log.debug("Grouped %d image(s) into %d card(s) of %d", len(ordered), len(groups), images_per_card)
    return groups


def create_cards_from_groups(
    conn: sqlite3.Connection, lot_id: str, groups: Sequence[CardGroup], start_sort_order: int = 0
) -> List[CardItem]:
    """Persist one Draft card per group. Caller owns the transaction."""
    card_repo = CardRepository(conn)
    cards = []
    for offset, group in enumerate(groups):
        card = CardItem(
            id=group.card_id,
            lot_id=lot_id,
            sort_order=start_sort_order + offset,
            images=[replace(img, card_item_id=group.card_id) for img in group.images],
        )
        card_repo.insert_card(card)
        cards.append(card)
    return cards


def add_images_to_lot(
    conn: sqlite3.Connection, lot_id: str, images: Sequence[CardImage], images_per_card: int
) -> List[CardItem]:
    """Group freshly uploaded images and append the new cards after the lot's existing ones."""
    groups = group_images(images, images_per_card)
    with lot_lock(lot_id):
        with transaction(conn):
            LotRepository(conn).require(lot_id)
            current_max = CardRepository(conn).max_sort_order(lot_id)
            start = 0 if current_max is None else current_max + 1
            cards = create_cards_from_groups(conn, lot_id, groups, start_sort_order=start)
    log.info("Added %d image(s) to lot %s as %d card(s)", len(images), lot_id, len(cards))
    return cards


def flatten_lot_images(cards: Sequence[CardItem]) -> List[CardImage]:
    """All images of the given cards, by card order then position within card."""
    flat = []
    for card in sorted(cards, key=lambda c: c.sort_order):
        flat.extend(sorted(card.images, key=lambda img: img.sort_order))
    return flat


def regroup_lot(conn: sqlite3.Connection, lot_id: str, images_per_card: int) -> List[CardItem]:
    """
    Replace every card of a lot with a fresh grouping of the same images.

    The old cards and all their metadata are discarded. The delete and the
    re-insert happen in one transaction under the lot's lock, so readers see
    either the old set of cards or the new one.
    """
    check_group_size(images_per_card)

    card_repo = CardRepository(conn)
    lot_repo = LotRepository(conn)

    log.debug("Regrouping lot %s with %d image(s) per card", lot_id, images_per_card)
    with lot_lock(lot_id):
        try:
            with transaction(conn):
                lot_repo.require(lot_id)
                existing = card_repo.list_for_lot(lot_id)
                images = flatten_lot_images(existing)
                groups = group_images(images, images_per_card)

                removed = card_repo.delete_for_lot(lot_id)
                cards = create_cards_from_groups(conn, lot_id, groups)
                lot_repo.set_images_per_card(lot_id, images_per_card)
        except sqlite3.Error:
            log.warning("Regroup of lot %s rolled back; previous cards kept", lot_id)
            raise

    log.info(
        "Regrouped lot %s: %d card(s) -> %d card(s) of %d image(s)",
        lot_id, removed, len(cards), images_per_card,
    )
    return cards
