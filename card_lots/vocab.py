"""Controlled vocabularies shared by the editor, the database and the exporters."""

STATUS_OPTIONS = ("Draft", "Ready", "Exported")

CATEGORY_OPTIONS = (
    "Baseball",
    "Basketball",
    "Football",
    "Hockey",
    "Soccer",
    "Wrestling",
    "Racing",
    "Golf",
    "Tennis",
    "Boxing",
    "MMA",
    "Other Sports",
    "Non-Sport",
    "Gaming",
)

# eBay condition types for trading cards; the graded/ungraded decision keys off these
GRADED_CONDITION_TYPE = "Graded: Professionally graded"
UNGRADED_CONDITION_TYPE = "Ungraded: Not in original packaging or professionally graded"
CONDITION_TYPE_OPTIONS = (GRADED_CONDITION_TYPE, UNGRADED_CONDITION_TYPE)

# Ungraded card condition descriptors -> eBay descriptor value ids (ID: 40001)
# Order matters: the first entry is the fallback for unset/unknown text.
CARD_CONDITION_CODES = {
    "Near mint or better: Comparable to a fresh pack": "400010",
    "Excellent: Has clearly visible signs of wear": "400011",
    "Very good: Has moderate-to-heavy damage all over": "400012",
    "Poor: Is extremely worn and displays flaws all over": "400013",
}
CONDITION_OPTIONS = tuple(CARD_CONDITION_CODES)

GRADER_OPTIONS = (
    "Professional Sports Authenticator (PSA)",
    "Beckett Grading Services (BGS)",
    "Beckett Vintage Grading (BVG)",
    "Beckett Collectors Club Grading (BCCG)",
    "Certified Sports Guaranty (CSG)",
    "Certified Guaranty Company (CGC)",
    "Sportscard Guaranty Corporation (SGC)",
    "Hybrid Grading Approach (HGA)",
    "K Sportscard Authentication (KSA)",
    "Gem Mint Authentication (GMA)",
    "International Sports Authentication (ISA)",
    "Gold Standard Grading (GSG)",
    "Platin Grading Service (PGS)",
    "MNT Grading (MNT)",
    "Technical Authentication & Grading (TAG)",
    "Rare Edition (Rare)",
    "Revolution Card Grading (RCG)",
    "Ace Grading (Ace)",
    "Card Grading Australia (CGA)",
    "Trading Card Grading (TCG)",
    "Automated Grading Systems (AGS)",
    "Diamond Service Grading (DSG)",
    "Majesty Grading Company",
    "GRAAD",
    "Arena Club",
    "AiGrading",
    "Other",
)

# 10 down to 1 in half steps
GRADE_OPTIONS = tuple(
    f"{g / 2:g}" for g in range(20, 1, -1)
)

LISTING_TYPE_OPTIONS = ("Auction", "BuyItNow")
SCHEDULE_MODE_OPTIONS = ("Immediate", "Scheduled")
DURATION_OPTIONS = (1, 3, 5, 7, 10)
RETURN_WINDOW_OPTIONS = (14, 30, 60)
SHIPPING_PAID_BY_OPTIONS = ("Buyer", "Seller")

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".tif", ".tiff", ".bmp")
