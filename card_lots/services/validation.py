"""Field validation for card edits and export profiles."""

from typing import Any, Dict, List

from card_lots.errors import InvalidConfiguration
from card_lots.utils import is_blank
from card_lots.vocab import (
    CONDITION_OPTIONS,
    CONDITION_TYPE_OPTIONS,
    DURATION_OPTIONS,
    GRADE_OPTIONS,
    GRADER_OPTIONS,
    LISTING_TYPE_OPTIONS,
    RETURN_WINDOW_OPTIONS,
    SCHEDULE_MODE_OPTIONS,
    SHIPPING_PAID_BY_OPTIONS,
    STATUS_OPTIONS,
)

# Card fields restricted to a fixed vocabulary when set
_CARD_CHOICES = {
    "status": STATUS_OPTIONS,
    "condition_type": CONDITION_TYPE_OPTIONS,
    "condition": CONDITION_OPTIONS,
    "grade": GRADE_OPTIONS,
    "grader": GRADER_OPTIONS,
}


def validate_card_changes(changes: Dict[str, Any]) -> None:
    """
    Check a partial card update before it is written.

    Blank values are allowed everywhere (they clear the field) except
    status and condition_type, which always hold one of their options.

    Raises:
        InvalidConfiguration: listing every offending field
    """
    bad: List[str] = []
    for name, options in _CARD_CHOICES.items():
        if name not in changes:
            continue
        value = changes[name]
        if is_blank(value) and name not in ("status", "condition_type"):
            continue
        if value not in options:
            bad.append(name)

    year = changes.get("year")
    if year is not None and not (isinstance(year, int) and 1800 <= year <= 2100):
        bad.append("year")

    price = changes.get("sale_price")
    if price is not None and (not isinstance(price, (int, float)) or price < 0):
        bad.append("sale_price")

    if bad:
        raise InvalidConfiguration(f"Invalid value for: {', '.join(bad)}", fields=bad)


def validate_profile(profile) -> None:
    """
    Check that every profile value is in its allowed range.

    Raises:
        InvalidConfiguration: listing every offending field
    """
    bad = [
        name for name in ("template_name", "ebay_category", "shipping_service", "start_price_default")
        if is_blank(getattr(profile, name))
    ]
    if profile.listing_type not in LISTING_TYPE_OPTIONS:
        bad.append("listing_type")
    if profile.schedule_mode not in SCHEDULE_MODE_OPTIONS:
        bad.append("schedule_mode")
    if profile.duration_days not in DURATION_OPTIONS:
        bad.append("duration_days")
    if profile.return_window_days not in RETURN_WINDOW_OPTIONS:
        bad.append("return_window_days")
    if profile.shipping_cost_paid_by not in SHIPPING_PAID_BY_OPTIONS:
        bad.append("shipping_cost_paid_by")
    for name, upper in (("stagger_interval_seconds", 3600), ("handling_time_days", 30)):
        value = getattr(profile, name)
        if value is None or not 0 <= value <= upper:
            bad.append(name)
    if profile.start_price_default is not None and profile.start_price_default <= 0:
        bad.append("start_price_default")
    if profile.buy_it_now_price is not None and profile.buy_it_now_price <= 0:
        bad.append("buy_it_now_price")
    for name in ("shipping_cost", "each_additional_item_cost"):
        value = getattr(profile, name)
        if value is not None and value < 0:
            bad.append(name)
    if not is_blank(profile.template_name) and len(profile.template_name) > 100:
        bad.append("template_name")

    if bad:
        raise InvalidConfiguration(f"Invalid export settings: {', '.join(bad)}", fields=bad)


def check_profile_for_export(profile) -> None:
    """
    Check that the profile has everything an eBay upload file needs.

    Raises:
        InvalidConfiguration: listing every missing field
    """
    missing = []
    for name in (
        "template_name", "ebay_category", "listing_type", "start_price_default",
        "duration_days", "store_category", "shipping_service", "handling_time_days",
    ):
        if is_blank(getattr(profile, name)):
            missing.append(name)

    if profile.schedule_mode == "Scheduled":
        if is_blank(profile.schedule_date):
            missing.append("schedule_date")
        if is_blank(profile.schedule_time):
            missing.append("schedule_time")

    if not profile.free_shipping and profile.shipping_cost is None:
        missing.append("shipping_cost")

    if missing:
        raise InvalidConfiguration(
            f"Missing required export settings: {', '.join(missing)}", fields=missing
        )
