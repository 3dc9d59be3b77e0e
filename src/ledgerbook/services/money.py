"""Locale-aware currency formatting built on Babel's CLDR data."""

from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional, Union

from babel import Locale, UnknownLocaleError
from babel.numbers import format_currency

logger = logging.getLogger("ledgerbook.money")

FALLBACK_LOCALE = "en_US"
THOUSANDS_SUFFIX = "K"

Number = Union[int, float, Decimal]

_FRACTION_RE = re.compile(r"\.[0#]+")


def _parse_locale(tag: str) -> Locale:
    """Parse ``en-IN``/``en_IN`` into a Babel locale, falling back to en_US."""

    try:
        return Locale.parse((tag or "").replace("-", "_"))
    except (UnknownLocaleError, ValueError, TypeError):
        logger.debug("Unsupported locale %r; formatting with %s", tag, FALLBACK_LOCALE)
        return Locale.parse(FALLBACK_LOCALE)


def _currency_pattern(locale: Locale, fraction_digits: int) -> str:
    """The locale's standard currency pattern with 0..N optional fraction digits."""

    pattern = locale.currency_formats["standard"].pattern
    fraction = "." + "#" * fraction_digits if fraction_digits > 0 else ""
    return _FRACTION_RE.sub(fraction, pattern)


def format_money(
    amount: Number,
    currency: str,
    locale: str,
    fraction_digits: Optional[int] = None,
    abbreviate: bool = False,
) -> str:
    """Render *amount* as a currency string for *locale*.

    Whole units are shown unless ``fraction_digits`` asks for more; trailing
    zero decimals are dropped. With ``abbreviate`` amounts above 1000 are
    divided by 1000 and suffixed with ``K`` (``₹1,500K``).
    """

    value = Decimal(str(amount))
    suffix = ""
    if abbreviate and value > 1000:
        value = value / 1000
        suffix = THOUSANDS_SUFFIX

    digits = max(fraction_digits or 0, 0)
    babel_locale = _parse_locale(locale)
    code = (currency or "").upper()

    # Quantizing needs every integer digit in the context precision.
    with localcontext() as ctx:
        if value.is_finite():
            ctx.prec = max(ctx.prec, value.adjusted() + digits + 2)
            value = value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
        try:
            formatted = format_currency(
                value,
                code,
                format=_currency_pattern(babel_locale, digits),
                locale=babel_locale,
                currency_digits=False,
            )
        except (KeyError, ValueError) as exc:
            logger.debug("Falling back to %s formatting for %s: %s", FALLBACK_LOCALE, code, exc)
            fallback = Locale.parse(FALLBACK_LOCALE)
            formatted = format_currency(
                value,
                code,
                format=_currency_pattern(fallback, digits),
                locale=fallback,
                currency_digits=False,
            )
    return formatted + suffix
