"""Site categories used to cluster frequently visited domains into suggestions.

A domain belongs to the first category (in table order) with a keyword
that is a substring of the domain.  Order matters: ``youtube.com`` is
``google``, not ``entertainment``.
"""

from __future__ import annotations

from typing import Final

from tabgroup.core.types import TabColor

UNCATEGORIZED_CATEGORY: Final[str] = "domain"

SITE_CATEGORIES: Final[dict[str, tuple[str, ...]]] = {
    "news": ("news", "cnn", "bbc", "reuters", "techcrunch", "ycombinator", "hackernews", "medium", "substack"),
    "social": ("facebook", "twitter", "instagram", "linkedin", "reddit", "tiktok", "snapchat", "discord", "telegram"),
    "shopping": ("amazon", "ebay", "etsy", "shopify", "walmart", "target", "alibaba", "shop"),
    "development": ("github", "gitlab", "stackoverflow", "npm", "developer.mozilla", "codepen", "codesandbox", "repl.it"),
    "google": ("gmail", "docs.google", "drive.google", "calendar.google", "meet.google", "maps.google", "youtube"),
    "microsoft": ("outlook", "office", "microsoft", "teams.microsoft", "onedrive", "xbox"),
    "entertainment": ("youtube", "netflix", "hulu", "disney", "twitch", "spotify", "soundcloud", "podcasts"),
    "productivity": ("notion", "slack", "asana", "trello", "monday", "airtable", "figma", "canva"),
    "education": ("coursera", "udemy", "khan", "edx", "pluralsight", "codecademy", "freecodecamp"),
    "finance": ("paypal", "stripe", "coinbase", "robinhood", "mint", "chase", "bank", "credit"),
}

CATEGORY_DISPLAY_NAMES: Final[dict[str, str]] = {
    "news": "News & Media",
    "social": "Social Media",
    "shopping": "Shopping",
    "development": "Development Tools",
    "google": "Google Services",
    "microsoft": "Microsoft Services",
    "entertainment": "Entertainment",
    "productivity": "Productivity Tools",
    "education": "Learning & Education",
    "finance": "Finance & Banking",
}

CATEGORY_COLORS: Final[dict[str, TabColor]] = {
    "news": TabColor.RED,
    "social": TabColor.BLUE,
    "shopping": TabColor.ORANGE,
    "development": TabColor.PURPLE,
    "google": TabColor.GREEN,
    "microsoft": TabColor.BLUE,
    "entertainment": TabColor.PINK,
    "productivity": TabColor.CYAN,
    "education": TabColor.YELLOW,
    "finance": TabColor.GREEN,
}


def categorize_domain(domain: str) -> str | None:
    """Return the first category whose keyword occurs in *domain*, else ``None``."""
    for category, keywords in SITE_CATEGORIES.items():
        if any(keyword in domain for keyword in keywords):
            return category
    return None


def category_display_name(category: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(category, category[:1].upper() + category[1:])


def category_color(category: str) -> TabColor:
    return CATEGORY_COLORS.get(category, TabColor.GREY)
