from __future__ import annotations

import logging
import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email  # type: ignore

logger = logging.getLogger(__name__)

_SPACE_RUN_RE = re.compile(r" +")


class PostalPatternError(ValueError):
    """Raised when a country's postal pattern is not a valid regular expression."""


def clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def _upper_char(ch: str) -> str:
    # some characters upper-case to more than one (ß -> SS); leave those alone
    upper = ch.upper()
    return upper if len(upper) == 1 else ch


def capitalize_words(value: Optional[str]) -> str:
    """
    Lower-case and trim the value, then upper-case the first letter of every
    word. Runs of interior spaces collapse to a single space.
    """
    s = clean_text(value).lower()
    if not s:
        return ""
    collapsed = _SPACE_RUN_RE.sub(" ", s)
    return " ".join(_upper_char(word[:1]) + word[1:] for word in collapsed.split(" "))


def extract_digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", clean_text(value))


def postal_code_is_valid(postal_code: Optional[str], pattern: Optional[str]) -> bool:
    code = clean_text(postal_code)
    if not code or not pattern:
        return True
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise PostalPatternError(f"Invalid postal pattern {pattern!r}: {exc}") from exc
    return compiled.search(code) is not None


def insert_space_in_postal(postal_code: Optional[str], position: int) -> str:
    """
    Remove every space from the postal code and put a single one back before
    the character at ``position``. Positions outside the code are ignored.
    """
    compact = clean_text(postal_code).replace(" ", "")
    if 0 < position < len(compact):
        return f"{compact[:position]} {compact[position:]}"
    return compact


def format_phone_dashes(digits: str) -> str:
    return re.sub(r"^(\d{3})(\d{3})(\d{4})$", r"\1-\2-\3", digits)


def email_error(value: Optional[str], check_deliverability: bool = False) -> Optional[str]:
    candidate = clean_text(value)
    if not candidate:
        return None
    try:
        validate_email(candidate, check_deliverability=check_deliverability)
    except EmailNotValidError as exc:
        logger.debug("email_validator rejected %s: %s", candidate, exc)
        return str(exc)
    return None
