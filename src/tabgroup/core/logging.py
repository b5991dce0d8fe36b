"""Log sanitizing for browsing data.

Grouping decisions are easiest to debug by hostname, so log messages
mention tabs and history entries freely.  Paths and query strings can
carry search terms, tokens, or document names, so before a record
reaches a handler every ``http(s)://`` URL is cut back to its origin and
explicit ``url=...`` style values are masked.

Usage::

    from tabgroup.core.logging import configure_logging

    configure_logging(verbose=True)
"""

from __future__ import annotations

import logging
import re
from typing import Final

_MASK: Final[str] = "[REDACTED]"

# Keys whose whole value is masked, wherever they appear as key=value or key: value.
_MASKED_KEYS: Final[tuple[str, ...]] = ("full_url", "url", "query", "tab_title")

_KEY_VALUE_RE: Final[re.Pattern[str]] = re.compile(
    r"\b(?P<key>" + "|".join(map(re.escape, _MASKED_KEYS)) + r")"
    r"\s*[=:]\s*(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)

_URL_RE: Final[re.Pattern[str]] = re.compile(
    r"(?P<origin>https?://[^/\s?#]+)(?P<rest>[/?#][^\s\"']*)",
    re.IGNORECASE,
)


def redact_message(message: str) -> str:
    """Mask sensitive ``key=value`` pairs and cut URLs back to their origin.

    ``"url=https://a.com/x"`` becomes ``"url=[REDACTED]"`` and
    ``"https://mail.google.com/inbox?x=1"`` becomes
    ``"https://mail.google.com/[REDACTED]"``.
    """
    masked = _KEY_VALUE_RE.sub(lambda m: f"{m['key']}={_MASK}", message)
    return _URL_RE.sub(lambda m: f"{m['origin']}/{_MASK}", masked)


class SanitizingFilter(logging.Filter):
    """Rewrites records in place so browsing data never reaches a handler.

    The message is formatted first, so values passed as ``%s`` arguments
    are covered as well as literal text.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        text = record.getMessage() if record.args else str(record.msg)
        record.msg = redact_message(text)
        record.args = None
        return True


def install_sanitizing_filter(
    logger: logging.Logger | None = None,
    *,
    handler_level: bool = False,
) -> SanitizingFilter:
    """Attach one :class:`SanitizingFilter` to *logger* (root by default).

    With ``handler_level=True`` the filter goes on each of the logger's
    handlers instead; records propagating up from child loggers only pass
    through handler filters.

    Returns:
        The installed filter, for later removal.
    """
    sanitizer = SanitizingFilter()
    target = logger or logging.getLogger()
    if handler_level:
        for handler in target.handlers:
            handler.addFilter(sanitizer)
    else:
        target.addFilter(sanitizer)
    return sanitizer


def configure_logging(verbose: bool = False) -> None:
    """Root logging for CLI runs: WARNING (DEBUG if *verbose*), sanitized."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    install_sanitizing_filter(handler_level=True)
