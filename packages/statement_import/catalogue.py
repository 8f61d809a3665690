"""
Built-in catalogue of well known merchants.

Consulted after the user's own merchant mappings. A deployment can replace
it with a JSON file (``KNOWN_MERCHANTS_FILE``) holding a list of
``{"pattern", "name", "category", "subcategory"}`` objects.
"""

import json
from pathlib import Path
from typing import Optional, Tuple

import structlog

from .models import KnownMerchant

logger = structlog.get_logger()

DEFAULT_CATALOGUE: Tuple[KnownMerchant, ...] = (
    # Groceries
    KnownMerchant("SPINNEYS", "Spinneys", "Food & Dining", "Groceries"),
    KnownMerchant("CARREFOUR", "Carrefour", "Food & Dining", "Groceries"),
    # Food delivery and restaurants
    KnownMerchant("TOTERS", "Toters", "Food & Dining", "Restaurants"),
    KnownMerchant("ROADSTER", "Roadster Diner", "Food & Dining", "Restaurants"),
    KnownMerchant("CREPAWAY", "Crepaway", "Food & Dining", "Restaurants"),
    KnownMerchant("STARBUCKS", "Starbucks", "Food & Dining", "Coffee"),
    KnownMerchant("DUNKIN", "Dunkin", "Food & Dining", "Coffee"),
    # Telecom and utilities
    KnownMerchant("ALFA", "Alfa", "Bills & Utilities", "Phone"),
    KnownMerchant("TOUCH", "Touch", "Bills & Utilities", "Phone"),
    KnownMerchant("MTC", "Touch (MTC)", "Bills & Utilities", "Phone"),
    KnownMerchant("EDL", "Electricité du Liban", "Bills & Utilities", "Electricity"),
    KnownMerchant("OGERO", "Ogero", "Bills & Utilities", "Internet"),
    KnownMerchant("GITHUB", "GitHub", "Bills & Utilities", "Internet"),
    # Home
    KnownMerchant("KHOURY HOME", "Khoury Home", "Shopping", "Home"),
    KnownMerchant("TAHAN", "Tahan Home Appliance", "Shopping", "Home"),
    # Shopping
    KnownMerchant("STORIOM", "Storiom", "Shopping", "Clothes"),
    KnownMerchant("ZARA", "Zara", "Shopping", "Clothes"),
    KnownMerchant("H&M", "H&M", "Shopping", "Clothes"),
    KnownMerchant("AMAZON", "Amazon", "Shopping", None),
    KnownMerchant("MOJITECH", "Mojitech", "Shopping", "Electronics"),
    KnownMerchant("ABC", "ABC Mall", "Shopping", None),
    KnownMerchant("CITY CENTRE", "City Centre", "Shopping", None),
    # Transport
    KnownMerchant("TOTAL", "Total (Gas)", "Transport", "Fuel"),
    KnownMerchant("UBER", "Uber", "Transport", "Taxi"),
    KnownMerchant("BOLT", "Bolt", "Transport", "Taxi"),
    # Entertainment
    KnownMerchant("NETFLIX", "Netflix", "Entertainment", "Movies"),
    KnownMerchant("SPOTIFY", "Spotify", "Entertainment", "Music"),
    # Travel
    KnownMerchant("LE ROYAL", "Le Royal Hotel", "Travel", "Hotels"),
    # Health
    KnownMerchant("PHARMACY", "Pharmacy", "Health", "Pharmacy"),
    KnownMerchant("PHARMACIE", "Pharmacy", "Health", "Pharmacy"),
    # Other
    KnownMerchant("LIBANPOST", "LibanPost", "Other", None),
)


def load_catalogue(path: Optional[str] = None) -> Tuple[KnownMerchant, ...]:
    """Load the catalogue from a JSON file, or return the built-in one."""
    if not path:
        return DEFAULT_CATALOGUE

    entries = json.loads(Path(path).read_text(encoding="utf-8"))
    catalogue = tuple(
        KnownMerchant(
            pattern=str(entry["pattern"]).strip().upper(),
            display_name=entry["name"],
            suggested_category_label=entry.get("category", "Other"),
            suggested_subcategory_label=entry.get("subcategory"),
        )
        for entry in entries
    )
    logger.info("catalogue_loaded", path=path, entries=len(catalogue))
    return catalogue
