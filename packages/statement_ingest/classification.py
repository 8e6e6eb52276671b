"""Keyword-rule merchant classification.

Each rule maps a set of keyword phrases to a ``(category, subcategory)`` pair.
Rules are evaluated in order and the first match wins, so the order encodes
priority among overlapping keywords: ``UBER ONE`` hits the ``uber`` rideshare
rule before the membership rule is ever consulted.

Matching runs against two views of the description:

- normalized: lowercased, whitespace runs collapsed, trimmed;
- collapsed: the normalized text with every non ``[a-z0-9]`` character
  removed, which tolerates extraction artifacts like ``A T  H O P``.

PayPal descriptions (``PAYPAL *SUBMERCHANT``) are unwrapped first: the
sub-merchant name is checked against a small override table, then against the
general rules, and only then falls back to ``Other/General``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import Classification

DEFAULT_CLASSIFICATION = Classification("Other", "General")

_WS_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_PAYPAL_PREFIX_RE = re.compile(r"^paypal\s*\*?\s*")

logger = get_logger("statement_ingest.classification")


def normalize(value: str | None) -> str:
    return _WS_RE.sub(" ", (value or "").lower()).strip()


def collapse(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value)


@dataclass(frozen=True, slots=True)
class CategoryRule:
    category: str
    subcategory: str
    keywords: tuple[str, ...]
    normalized_keywords: tuple[str, ...] = ()
    collapsed_keywords: tuple[str, ...] = ()

    @classmethod
    def build(cls, category: str, subcategory: str, keywords: tuple[str, ...]) -> CategoryRule:
        normalized = tuple(normalize(k) for k in keywords)
        return cls(
            category=category,
            subcategory=subcategory,
            keywords=keywords,
            normalized_keywords=normalized,
            collapsed_keywords=tuple(collapse(k) for k in normalized),
        )

    @property
    def classification(self) -> Classification:
        return Classification(self.category, self.subcategory)

    def matches(self, normalized_value: str, collapsed_value: str) -> bool:
        if any(k and k in normalized_value for k in self.normalized_keywords):
            return True
        return any(k and k in collapsed_value for k in self.collapsed_keywords)


# fmt: off
CATEGORY_RULES: tuple[CategoryRule, ...] = tuple(
    CategoryRule.build(category, subcategory, keywords)
    for category, subcategory, keywords in (
        ("Transport", "Public Transport", ("public transport", "at hop", "athop", "bus ", "train", "ferry")),
        ("Transport", "Rideshare", ("uber", "ola", "didi", "lyft")),
        ("Transport", "Micromobility", ("lime", "beam", "neuron")),
        ("Car", "Fuel & Charging", ("petrol", "gasoline", "gas station", "bp", "z energy", "caltex", "mobil", "gull", "fuel ")),
        ("Car", "Services & Maintenance", ("aa battery", "aa service", "aa centre", "aa smartfuel", "aa roadside", "aa nz", "aa mount wellington")),
        ("Groceries", "Supermarkets", ("woolworths", "pak n save", "paksave", "new world", "countdown", "farro", "supermarket")),
        ("Groceries", "Alcohol & Beverage", ("liquorland", "super liquor", "liquor ", "bottle o", "birkenhead liquor")),
        ("Groceries", "Specialty Food", ("butcher", "bakery", "deli", "organics", "wholefoods", "pachamama latino store", "daiso japan", "3 japan")),
        ("Dining", "Cafes", ("coffee", "cafe", "espresso", "starbucks")),
        ("Dining", "Fast Food", ("mcdonald", "kfc", "burger king", "subway", "domino", "pizza hut", "hungry jacks")),
        ("Dining", "Dining Out", ("restaurant", "bistro", "dining", "cuisine", "grill", "izakaya", "eatery", "fat badgers pizza", "pizza bar")),
        ("Entertainment", "Streaming", ("netflix", "spotify", "disney", "apple music", "youtube", "paramount", "hbo", "amazon prime")),
        ("Entertainment", "Gaming", ("playstation", "steam", "nintendo", "xbox", "game pass", "gaming")),
        ("Entertainment", "Movies & Events", ("event cinema", "cinemas", "movies", "theatre")),
        ("Subscriptions & Services", "Software & Cloud", ("openai", "claude", "cursor", "expressvpn", "cloudflare", "apple.com", "applecom", "icloud", "itunes", "microsoft", "google", "adobe", "github")),
        ("Subscriptions & Services", "Mobile Phone", ("skinny mobile", "vodafone", "spark mobile")),
        ("Subscriptions & Services", "Memberships", ("uber one membership", "uber one")),
        ("Shopping", "Retail & Home", ("kmart", "warehouse", "briscoes", "bunnings", "mitre 10", "ikea", "noel leeming", "harvey norman", "jb hi fi", "mighty ape")),
        ("Shopping", "Apparel", ("farmer", "fashion", "adidas", "puma", "nike", "seed heritage", "hallenstein", "glassons")),
        ("Health", "Pharmacy & Health", ("chemist", "pharmacy", "unimeds", "medical", "clinic")),
        ("Travel", "Accommodation", ("hotel", "airbnb", "accor", "hilton", "marriott", "motel", "resort", "booking.com", "booking")),
        ("Travel", "Flights", ("air new zealand", "jetstar", "qantas", "airline", "flight")),
        ("Hobbies", "Learning & Classes", ("language lesson", "music lesson", "art class")),
    )
)

# Sub-merchant name (collapsed) -> classification, checked before the general rules.
PAYPAL_OVERRIDES: tuple[tuple[str, Classification], ...] = (
    ("laucolla", Classification("Other", "Counselling")),
    ("mariano", Classification("Hobbies", "Learning & Classes")),
    ("mightyape", Classification("Shopping", "Retail & Home")),
    ("booking", Classification("Travel", "Accommodation")),
    ("cloudflare", Classification("Subscriptions & Services", "Software & Cloud")),
)
# fmt: on


def match_rules(
    normalized_value: str,
    collapsed_value: str,
    rules: tuple[CategoryRule, ...] = CATEGORY_RULES,
) -> Classification | None:
    for rule in rules:
        if rule.matches(normalized_value, collapsed_value):
            return rule.classification
    return None


def _classify_paypal(normalized_place: str) -> Classification:
    name = normalize(_PAYPAL_PREFIX_RE.sub("", normalized_place))
    collapsed_name = collapse(name)

    for needle, classification in PAYPAL_OVERRIDES:
        if needle in collapsed_name:
            logger.debug("classify:paypal_override name=%r match=%s", name, needle)
            return classification

    return match_rules(name, collapsed_name) or DEFAULT_CLASSIFICATION


def categorize_merchant(description: str | None) -> Classification:
    """Map a raw merchant description to ``(category, subcategory)``.

    Deterministic and side-effect free; unknown merchants map to
    ``("Other", "General")``.
    """

    normalized_place = normalize(description)
    if normalized_place.startswith("paypal"):
        return _classify_paypal(normalized_place)

    return match_rules(normalized_place, collapse(normalized_place)) or DEFAULT_CLASSIFICATION


__all__ = [
    "CATEGORY_RULES",
    "DEFAULT_CLASSIFICATION",
    "PAYPAL_OVERRIDES",
    "CategoryRule",
    "categorize_merchant",
    "collapse",
    "match_rules",
    "normalize",
]
