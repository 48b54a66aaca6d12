"""
Age text normalization.

Ages arrive as Indonesian free text ("1 tahun 11 bulan", "7 bulan"). These
helpers convert between that text and an integer month count.
"""

import re
from typing import Optional

from .config import MONTHS_PER_YEAR

_YEARS_AND_MONTHS = re.compile(r"(\d+)\s*tahun\s*(\d+)\s*bulan", re.IGNORECASE)
_MONTHS_ONLY = re.compile(r"(\d+)\s*bulan", re.IGNORECASE)


def parse_age_text(age_text: Optional[str]) -> Optional[int]:
    """
    Convert an age description to months.

    Recognises "<N> tahun <M> bulan" (12*N + M) and "<M> bulan" (M).
    Anything else, including "<N> tahun" without a month part, gives None,
    which callers must treat as "cannot classify" rather than zero.

    Args:
        age_text: Free-text age, e.g. "2 tahun 3 bulan"

    Returns:
        Age in whole months, or None if the text is not recognised
    """
    if not age_text:
        return None

    match = _YEARS_AND_MONTHS.search(age_text)
    if match:
        years, months = int(match.group(1)), int(match.group(2))
        return years * MONTHS_PER_YEAR + months

    match = _MONTHS_ONLY.search(age_text)
    if match:
        return int(match.group(1))

    return None


def format_age_months(months: int) -> str:
    """
    Render a month count as age text.

    Args:
        months: Non-negative age in months

    Returns:
        "<years> tahun <rem> bulan" when years > 0, otherwise "<rem> bulan"

    Raises:
        ValueError: If months is negative
    """
    months = int(months)
    if months < 0:
        raise ValueError("Age in months must be non-negative")

    years, remaining = divmod(months, MONTHS_PER_YEAR)
    if years > 0:
        return f"{years} tahun {remaining} bulan"
    return f"{remaining} bulan"
