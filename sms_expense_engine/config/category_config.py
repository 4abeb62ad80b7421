"""
Category and engine configuration for the SMS expense engine.
Contains the category enumeration, the merchant catalog, keyword scoring
tables and engine-wide constants.
"""

from collections import namedtuple
from types import MappingProxyType

# Category enumeration (plus the catch-all)
CATEGORY_FOOD = "Food"
CATEGORY_GROCERY = "Grocery"
CATEGORY_RECHARGE = "Recharge"
CATEGORY_INVESTMENT = "Investment"
CATEGORY_TELECOM = "Telecom"
CATEGORY_MISC = "Misc"

VALID_CATEGORIES = (
    CATEGORY_FOOD,
    CATEGORY_GROCERY,
    CATEGORY_RECHARGE,
    CATEGORY_INVESTMENT,
    CATEGORY_TELECOM,
    CATEGORY_MISC,
)


MerchantCategoryRule = namedtuple("MerchantCategoryRule", ["merchant_name", "category"])


# Exact merchant strings as they appear in bank messages (case preserved).
# Bank alerts truncate long merchant names, hence entries like "Bundl Technologi".
MERCHANT_CATEGORIES = (
    # Food delivery
    MerchantCategoryRule("Swiggy Limited", CATEGORY_FOOD),
    MerchantCategoryRule("BUNDL TECHNOLOGIES", CATEGORY_FOOD),
    MerchantCategoryRule("Bundl Technologi", CATEGORY_FOOD),
    MerchantCategoryRule("ZOMATO", CATEGORY_FOOD),
    # Groceries
    MerchantCategoryRule("BLINKIT", CATEGORY_GROCERY),
    MerchantCategoryRule("ZEPTO", CATEGORY_GROCERY),
    MerchantCategoryRule("BIGBASKET", CATEGORY_GROCERY),
    MerchantCategoryRule("SWIGGY LIMITED", CATEGORY_GROCERY),  # Instamart
    # Investment platforms
    MerchantCategoryRule("ANGEL LTD NSE", CATEGORY_INVESTMENT),
    MerchantCategoryRule("ANGEL ONE", CATEGORY_INVESTMENT),
    MerchantCategoryRule("ANGEL One Limite", CATEGORY_INVESTMENT),
    MerchantCategoryRule("ANGEL BROKING", CATEGORY_INVESTMENT),
    MerchantCategoryRule("Zerodha Broking", CATEGORY_INVESTMENT),
    MerchantCategoryRule("ZERODHA", CATEGORY_INVESTMENT),
    MerchantCategoryRule("GROWW", CATEGORY_INVESTMENT),
    MerchantCategoryRule("Groww Payments", CATEGORY_INVESTMENT),
    MerchantCategoryRule("GROWW INVESTMENT", CATEGORY_INVESTMENT),
    # Telecom
    MerchantCategoryRule("JIO PLATFORMS L", CATEGORY_TELECOM),
    MerchantCategoryRule("AIRTEL", CATEGORY_TELECOM),
    MerchantCategoryRule("BHARTI AIRTEL", CATEGORY_TELECOM),
    MerchantCategoryRule("VI", CATEGORY_TELECOM),
    MerchantCategoryRule("VODAFONE IDEA", CATEGORY_TELECOM),
)


# Keyword scoring, tried in this category order; first category with a hit wins
CATEGORY_KEYWORDS = MappingProxyType({
    CATEGORY_FOOD: (
        "restaurant", "food", "cafe", "dining", "swiggy", "zomato",
    ),
    CATEGORY_GROCERY: (
        "supermarket", "grocery", "mart", "store", "blinkit", "zepto", "bigbasket",
    ),
    CATEGORY_RECHARGE: (
        "airtel", "jio", "vi ", "vodafone", "recharge", "mobile bill",
    ),
    CATEGORY_INVESTMENT: (
        "mutual fund", "stocks", "investment", "trading", "groww",
        "angel", "zerodha", "nse", "bse", "securities", "broking",
    ),
    CATEGORY_TELECOM: (
        "platforms", "telecom", "jio", "airtel", "vodafone",
    ),
})

CATEGORY_KEYWORD_ORDER = (
    CATEGORY_FOOD,
    CATEGORY_GROCERY,
    CATEGORY_RECHARGE,
    CATEGORY_INVESTMENT,
    CATEGORY_TELECOM,
)


# Loose category labels (older records, imports) folded onto the enumeration
CATEGORY_ALIASES = MappingProxyType({
    "misc": CATEGORY_MISC,
    "miscellaneous": CATEGORY_MISC,
    "others": CATEGORY_MISC,
    "other": CATEGORY_MISC,
    "food": CATEGORY_FOOD,
    "restaurants": CATEGORY_FOOD,
    "dining": CATEGORY_FOOD,
    "grocery": CATEGORY_GROCERY,
    "groceries": CATEGORY_GROCERY,
    "supermarket": CATEGORY_GROCERY,
    "recharge": CATEGORY_RECHARGE,
    "mobile": CATEGORY_RECHARGE,
    "phone": CATEGORY_RECHARGE,
    "investment": CATEGORY_INVESTMENT,
    "telecom": CATEGORY_TELECOM,
})


ENGINE_CONFIG = MappingProxyType({
    # Settings-store key holding the last processed message timestamp
    "watermark_key": "last_sms_sync",
    "source_tag": "SMS",
    "unknown_merchant": "Unknown",
    # Characters inspected on each side of an amount candidate
    "amount_context_window": 20,
    # All-caps merchant candidates must be strictly inside these lengths
    "caps_min_length": 2,
    "caps_max_length": 25,
    # Generic words only disqualify a merchant phrase shorter than this
    "generic_term_max_length": 12,
})


def normalize_category(label: str) -> str:
    """
    Fold a free-form category label onto the category enumeration.

    Unknown labels are returned unchanged so custom categories survive.
    """
    if not label:
        return CATEGORY_MISC
    return CATEGORY_ALIASES.get(label.strip().lower(), label)
