"""Services for Card Lots."""

from card_lots.services.conditions import check_cards_ready, is_ready, resolve_condition_fields
from card_lots.services.grouping import group_images, regroup_lot
from card_lots.services.natural_sort import compare_filenames, natural_key
from card_lots.services.schedule import compute_schedule_time
from card_lots.services.titles import generate_title

__all__ = [
    "compare_filenames",
    "natural_key",
    "group_images",
    "regroup_lot",
    "generate_title",
    "resolve_condition_fields",
    "is_ready",
    "check_cards_ready",
    "compute_schedule_time",
]
