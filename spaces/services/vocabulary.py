"""
Retail Space Gazetteers

Static lookup tables used by the query parser and resolvers.
Loaded once at import and never mutated, so concurrent reads are safe.

Entity Types:
- STATES: Australian state / territory codes and names
- CATEGORIES: Canonical product categories and their display labels
- CATEGORY_SYNONYMS: User phrasing → canonical category id
- ASSET_TYPE_KEYWORDS: Phrases that switch the search to another asset type
- WEEKDAYS / MONTHS: Calendar vocabulary for date extraction
- AREA_ALIASES: Regions and cities → suburbs / cities / states
"""

from typing import Dict, FrozenSet, Optional, Tuple

# =============================================================================
# STATES & TERRITORIES
# =============================================================================
STATES = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "SA": "South Australia",
    "WA": "Western Australia",
    "TAS": "Tasmania",
    "NT": "Northern Territory",
    "ACT": "Australian Capital Territory",
}

STATE_ALIASES = {
    "new south wales": "NSW",
    "victoria": "VIC",
    "queensland": "QLD",
    "south australia": "SA",
    "western australia": "WA",
    "tasmania": "TAS",
    "northern territory": "NT",
    "australian capital territory": "ACT",
    "nsw": "NSW",
    "vic": "VIC",
    "qld": "QLD",
    "sa": "SA",
    "wa": "WA",
    "tas": "TAS",
    "nt": "NT",
    "act": "ACT",
}

# Codes that are also everyday English words; only matched when written upper case
CASE_SENSITIVE_STATE_CODES = frozenset({"act"})


# =============================================================================
# PRODUCT CATEGORIES (canonical id → display label)
# =============================================================================
CATEGORIES = {
    "fashion": "Fashion",
    "footwear": "Footwear",
    "food": "Food",
    "coffee": "Coffee",
    "electronics": "Electronics",
    "beauty": "Beauty",
    "pets": "Pets",
    "jewellery": "Jewellery",
    "books": "Books",
    "toys": "Toys",
    "sports": "Sports",
    "homewares": "Homewares",
    "garden": "Garden",
    "health": "Health",
    "art": "Art",
    "services": "Services",
    "charity": "Charity",
    "government": "Government",
    "community": "Community",
}

# Seeded free usage categories, used until the catalog reports its own;
# spaces reserved for them stay hidden unless one of these is searched for
FREE_CATEGORIES = frozenset({"charity", "government", "community"})

CATEGORY_SYNONYMS = {
    # Footwear
    "shoes": "footwear",
    "shoe": "footwear",
    "sneakers": "footwear",
    "sneaker": "footwear",
    "trainers": "footwear",
    "boots": "footwear",
    "boot": "footwear",
    "ugg": "footwear",
    "uggs": "footwear",
    "ugg boots": "footwear",
    "sheepskin boots": "footwear",
    # Fashion
    "clothes": "fashion",
    "clothing": "fashion",
    "apparel": "fashion",
    "fashions": "fashion",
    "streetwear": "fashion",
    "activewear": "fashion",
    # Food & beverage
    "foods": "food",
    "dining": "food",
    "eatery": "food",
    "bakery": "food",
    "sweets": "food",
    "lollies": "food",
    "cafe": "coffee",
    "cafes": "coffee",
    "coffee cart": "coffee",
    "coffee shop": "coffee",
    # Electronics
    "electronic": "electronics",
    "tech": "electronics",
    "technology": "electronics",
    "gadgets": "electronics",
    "phone accessories": "electronics",
    # Beauty
    "cosmetics": "beauty",
    "makeup": "beauty",
    "skincare": "beauty",
    "salon": "beauty",
    "hair salon": "beauty",
    "nails": "beauty",
    # Pets
    "pet": "pets",
    "pet supplies": "pets",
    "animals": "pets",
    # Jewellery
    "jewelry": "jewellery",
    "jeweller": "jewellery",
    "jeweler": "jewellery",
    # Books
    "book": "books",
    "bookshop": "books",
    "bookstore": "books",
    # Toys
    "toy": "toys",
    "games": "toys",
    # Sports
    "sport": "sports",
    "sporting goods": "sports",
    "fitness": "sports",
    "gym": "sports",
    # Home & garden
    "homeware": "homewares",
    "household": "homewares",
    "gardening": "garden",
    "plants": "garden",
    "nursery": "garden",
    # Health
    "wellness": "health",
    "pharmacy": "health",
    "vitamins": "health",
    # Art
    "artwork": "art",
    "crafts": "art",
    "handmade": "art",
    # Services
    "service": "services",
    "promotion": "services",
    "promotions": "services",
    "insurance": "services",
    "energy": "services",
    # Free usage
    "charities": "charity",
    "fundraising": "charity",
    "council": "government",
    "not for profit": "community",
    "not-for-profit": "community",
}


# =============================================================================
# ASSET TYPES (phrase → (asset type, third-line category))
# =============================================================================
CASUAL_LEASING = "casual_leasing"
VACANT_SHOP = "vacant_shop"
THIRD_LINE = "third_line"

THIRD_LINE_CATEGORIES = {
    "vending": "Vending Machines",
    "signage": "Signage",
    "billboard": "Billboards",
    "atm": "ATMs",
    "rides": "Kiddie Rides",
    "charging": "Charging Stations",
    "photo_booth": "Photo Booths",
    "digital_screen": "Digital Screens",
}

ASSET_TYPE_KEYWORDS: Dict[str, Tuple[str, Optional[str]]] = {
    # Vacant shops
    "vacant shop": (VACANT_SHOP, None),
    "vacant shops": (VACANT_SHOP, None),
    "vacant tenancy": (VACANT_SHOP, None),
    "vacant tenancies": (VACANT_SHOP, None),
    "empty shop": (VACANT_SHOP, None),
    "short term tenancy": (VACANT_SHOP, None),
    # Third line income
    "third line income": (THIRD_LINE, None),
    "3rd line income": (THIRD_LINE, None),
    "third line": (THIRD_LINE, None),
    "3rd line": (THIRD_LINE, None),
    "third-line": (THIRD_LINE, None),
    "3rd-line": (THIRD_LINE, None),
    "vending machines": (THIRD_LINE, "vending"),
    "vending machine": (THIRD_LINE, "vending"),
    "vending": (THIRD_LINE, "vending"),
    "signage": (THIRD_LINE, "signage"),
    "billboards": (THIRD_LINE, "billboard"),
    "billboard": (THIRD_LINE, "billboard"),
    "atms": (THIRD_LINE, "atm"),
    "atm": (THIRD_LINE, "atm"),
    "kiddie rides": (THIRD_LINE, "rides"),
    "kiddie ride": (THIRD_LINE, "rides"),
    "charging stations": (THIRD_LINE, "charging"),
    "charging station": (THIRD_LINE, "charging"),
    "photo booths": (THIRD_LINE, "photo_booth"),
    "photo booth": (THIRD_LINE, "photo_booth"),
    "digital screens": (THIRD_LINE, "digital_screen"),
    "digital screen": (THIRD_LINE, "digital_screen"),
    # Casual leasing (the default view, but stripped from the phrase)
    "casual mall leasing": (CASUAL_LEASING, None),
    "casual leasing": (CASUAL_LEASING, None),
    "pop up": (CASUAL_LEASING, None),
    "pop-up": (CASUAL_LEASING, None),
    "popup": (CASUAL_LEASING, None),
}


# =============================================================================
# CALENDAR
# =============================================================================
WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}


# =============================================================================
# AREAS (region / city → where to look)
# =============================================================================
AREA_ALIASES = {
    "brisbane": {
        "cities": ["Brisbane"],
        "suburbs": ["Deagon", "Kallangur", "Chermside", "Indooroopilly", "Carindale",
                    "Mt Gravatt", "Strathpine", "Aspley", "Nundah", "Toowong"],
        "states": ["QLD"],
    },
    "gold coast": {"cities": ["Gold Coast"], "states": ["QLD"]},
    "sunshine coast": {"cities": ["Sunshine Coast"], "states": ["QLD"]},
    "cairns": {"cities": ["Cairns"], "states": ["QLD"]},
    "townsville": {"cities": ["Townsville"], "states": ["QLD"]},
    "sydney": {"cities": ["Sydney"], "states": ["NSW"]},
    "western sydney": {
        "suburbs": ["Campbelltown", "Penrith", "Parramatta", "Liverpool", "Blacktown", "Fairfield"],
        "states": ["NSW"],
    },
    "eastern suburbs": {
        "suburbs": ["Bondi", "Bondi Junction", "Maroubra", "Randwick", "Coogee"],
        "states": ["NSW"],
    },
    "inner west": {"suburbs": ["Ashfield", "Burwood", "Strathfield", "Canterbury"], "states": ["NSW"]},
    "north shore": {"suburbs": ["Chatswood", "Hornsby", "Gordon", "Macquarie Park"], "states": ["NSW"]},
    "central coast": {"cities": ["Central Coast", "Gosford"], "states": ["NSW"]},
    "newcastle": {"cities": ["Newcastle"], "states": ["NSW"]},
    "wollongong": {"cities": ["Wollongong"], "states": ["NSW"]},
    "melbourne": {"cities": ["Melbourne"], "states": ["VIC"]},
    "geelong": {"cities": ["Geelong"], "states": ["VIC"]},
    "perth": {"cities": ["Perth"], "states": ["WA"]},
    "adelaide": {"cities": ["Adelaide"], "states": ["SA"]},
    "hobart": {"cities": ["Hobart"], "states": ["TAS"]},
    "darwin": {"cities": ["Darwin"], "states": ["NT"]},
    "canberra": {"cities": ["Canberra"], "states": ["ACT"]},
}


# =============================================================================
# RESIDUAL CLEAN-UP
# =============================================================================
# Words that only glue typed tokens together; trimmed from the edges of the
# centre-name phrase once everything else has been extracted
CONNECTOR_WORDS = frozenset({
    "at", "in", "from", "for", "near", "on", "to", "until", "till", "between",
    "and", "with", "of", "by", "around", "starting", "a", "an", "some", "any",
    "i", "need", "want", "looking", "find", "me", "space", "please",
})


# =============================================================================
# HELPERS
# =============================================================================

def get_all_category_terms() -> Dict[str, str]:
    """Every phrase that names a category, mapped to its canonical id."""
    terms = {cat: cat for cat in CATEGORIES}
    terms.update(CATEGORY_SYNONYMS)
    return terms


def get_category_canonical(term: str) -> Optional[str]:
    """Get canonical category id for a category name or synonym."""
    if not term:
        return None
    term_lower = term.lower().strip()
    if term_lower in CATEGORIES:
        return term_lower
    return CATEGORY_SYNONYMS.get(term_lower)


def get_category_label(category_id: str) -> str:
    """Display label for a canonical category id."""
    return CATEGORIES.get(category_id, category_id.replace("_", " ").title())


def get_state_code(term: str) -> Optional[str]:
    """Get state code from a code or full state name."""
    if not term:
        return None
    return STATE_ALIASES.get(term.lower().strip())


def get_asset_type_for_keyword(keyword: str) -> Optional[Tuple[str, Optional[str]]]:
    """Get (asset type, third-line category) for an asset keyword."""
    return ASSET_TYPE_KEYWORDS.get(" ".join(keyword.lower().split()))


def area_states(phrase: str) -> FrozenSet[str]:
    """States an area alias covers, empty if the phrase is not a known area."""
    alias = AREA_ALIASES.get(" ".join(phrase.lower().split()))
    if not alias:
        return frozenset()
    return frozenset(alias.get("states", []))


def area_matches_centre(phrase: str, suburb: Optional[str], city: Optional[str]) -> bool:
    """Whether a centre's suburb or city falls inside a named area."""
    alias = AREA_ALIASES.get(" ".join(phrase.lower().split()))
    if not alias:
        return False
    suburbs = {s.lower() for s in alias.get("suburbs", [])}
    cities = {c.lower() for c in alias.get("cities", [])}
    return bool(
        (suburb and suburb.lower() in suburbs)
        or (city and city.lower() in cities)
    )
