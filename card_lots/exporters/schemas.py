"""Column layouts for the raw and eBay File Exchange CSV files.

eBay header lists are keyed by schema version. Row builders never list
columns themselves; they fill one column -> value mapping and project it
through the chosen version's header list.
"""

from typing import Dict, Tuple

from card_lots.errors import InvalidConfiguration

RAW_HEADERS = (
    "Images",
    "Title",
    "Status",
    "Listings",
    "Sale Price",
    "Category",
    "Year",
    "Brand",
    "Set",
    "Name",
    "Card #",
    "Subset/Parallel",
    "Attributes",
    "Team",
    "Variation",
    "Graded",
    "Grader",
    "Condition",
    "Cert No.",
)

# Leading row of every File Exchange upload, before the header row
EBAY_INFO_ROW = ("Info", "Version=1.0.0", "Template=fx_category_template_EBAY_US")

ACTION_HEADER = "*Action(SiteID=US|Country=US|Currency=USD|Version=1193|CC=UTF-8)"

# Trading card template as first shipped
_EBAY_V1_0 = (
    ACTION_HEADER,
    "CustomLabel",
    "*Category",
    "StoreCategory",
    "*Title",
    "*ConditionID",
    "*C:Graded",
    "*C:Sport",
    "*C:Player/Athlete",
    "*C:Parallel/Variety",
    "*C:Manufacturer",
    "C:Season",
    "*C:Set",
    "CD:Grade - (ID: 27502)",
    "CD:Professional Grader - (ID: 27501)",
    "*C:Team",
    "CD:Card Condition - (ID: 40001)",
    "*C:Card Number",
    "CDA:Certification Number - (ID: 27503)",
    "PicURL",
    "*Description",
    "*Format",
    "*Duration",
    "*StartPrice",
    "*Quantity",
    "*Location",
    "ShippingService-1:Option",
    "ShippingService-1:Cost",
    "*DispatchTimeMax",
    "*ReturnsAcceptedOption",
    "ReturnsWithinOption",
    "ScheduleTime",
)

# Full trading card template (category 261328), matching a known-good
# Carddealerpro upload
_EBAY_V1_2 = (
    ACTION_HEADER,
    "CustomLabel",
    "*Category",
    "StoreCategory",
    "*Title",
    "Subtitle",
    "Relationship",
    "*ConditionID",
    "*C:Graded",
    "*C:Sport",
    "*C:Player/Athlete",
    "*C:Parallel/Variety",
    "*C:Manufacturer",
    "C:Season",
    "*C:Features",
    "*C:Set",
    "CD:Grade - (ID: 27502)",
    "*C:League",
    "CD:Professional Grader - (ID: 27501)",
    "*C:Team",
    "*C:Autographed",
    "CD:Card Condition - (ID: 40001)",
    "*C:Card Name",
    "*C:Card Number",
    "CDA:Certification Number - (ID: 27503)",
    "*C:Type",
    "C:Year Manufactured",
    "PicURL",
    "GalleryType",
    "*Description",
    "*Format",
    "*Duration",
    "*StartPrice",
    "BuyItNowPrice",
    "*Quantity",
    "PayPalAccepted",
    "PayPalEmailAddress",
    "ImmediatePayRequired",
    "PaymentInstructions",
    "*Location",
    "PostalCode",
    "ShippingType",
    "ShippingService-1:Option",
    "ShippingService-1:FreeShipping",
    "ShippingService-1:Cost",
    "ShippingService-1:AdditionalCost",
    "ShippingService-2:Option",
    "ShippingService-2:Cost",
    "*DispatchTimeMax",
    "PromotionalShippingDiscount",
    "ShippingDiscountProfileID",
    "*ReturnsAcceptedOption",
    "ReturnsWithinOption",
    "RefundOption",
    "ShippingCostPaidByOption",
    "AdditionalDetails",
    "ShippingProfileName",
    "ReturnProfileName",
    "PaymentProfileName",
    "ScheduleTime",
)

# 1.2 before the relationship, PayPal and shipping discount columns were added
_EBAY_V1_1 = tuple(
    h for h in _EBAY_V1_2
    if h not in (
        "Relationship",
        "PayPalAccepted",
        "PayPalEmailAddress",
        "PromotionalShippingDiscount",
        "ShippingDiscountProfileID",
    )
)

EBAY_SCHEMAS: Dict[str, Tuple[str, ...]] = {
    "1.0": _EBAY_V1_0,
    "1.1": _EBAY_V1_1,
    "1.2": _EBAY_V1_2,
}

DEFAULT_SCHEMA_VERSION = "1.2"


def get_ebay_headers(version: str = DEFAULT_SCHEMA_VERSION) -> Tuple[str, ...]:
    """Header list for a File Exchange schema version."""
    headers = EBAY_SCHEMAS.get(version)
    if headers is None:
        raise InvalidConfiguration(
            f"Unknown eBay schema version: {version}. Available: {', '.join(EBAY_SCHEMAS)}",
            fields=["schema_version"],
        )
    return headers
