"""Currency and locale resolution for money display.

The display locale is chosen by an ordered chain of resolvers so each step of
the precedence can be tested on its own:

1. an explicit user override,
2. the currency's preferred locale, when it shares the device's language,
3. the raw device locale,
4. ``en-US``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from babel import default_locale

from ..domain.repositories import PreferenceRepository
from .money import format_money

logger = logging.getLogger("ledgerbook.currency")

DEFAULT_LOCALE = "en-US"
DEFAULT_CURRENCY = "USD"
DEVICE_LOCALE_ENV = "LEDGERBOOK_DEVICE_LOCALE"

CURRENCY_LOCALE_MAP: dict[str, str] = {
    "INR": "en-IN",
    "USD": "en-US",
    "EUR": "de-DE",  # German formatting stands in for the euro area
    "GBP": "en-GB",
    "JPY": "ja-JP",
    "AUD": "en-AU",
    "CAD": "en-CA",
    "CHF": "de-CH",
    "CNY": "zh-CN",
    "SGD": "en-SG",
}

# Declaration order matters: the first entry for a language wins the
# language-only fallback in ``default_currency_from_locale``.
LOCALE_CURRENCY_MAP: dict[str, str] = {
    "en-US": "USD",
    "en-IN": "INR",
    "hi-IN": "INR",
    "en-GB": "GBP",
    "en-AU": "AUD",
    "en-CA": "CAD",
    "fr-CA": "CAD",
    "en-SG": "SGD",
    "de-DE": "EUR",
    "de-AT": "EUR",
    "de-CH": "CHF",
    "fr-FR": "EUR",
    "fr-CH": "CHF",
    "es-ES": "EUR",
    "it-IT": "EUR",
    "nl-NL": "EUR",
    "pt-PT": "EUR",
    "ja-JP": "JPY",
    "zh-CN": "CNY",
    "zh-SG": "SGD",
}


def normalize_locale_tag(tag: Optional[str]) -> Optional[str]:
    """Return ``ll-RR`` style tags ("en_us.UTF-8" -> "en-US"); None for blanks."""

    if tag is None:
        return None
    cleaned = tag.strip().split(".", 1)[0].split("@", 1)[0].replace("_", "-")
    if not cleaned or cleaned in {"C", "POSIX"}:
        return None
    parts = cleaned.split("-")
    language = parts[0].lower()
    rest = [p.upper() if len(p) == 2 else p for p in parts[1:]]
    return "-".join([language, *rest])


def language_subtag(tag: str) -> str:
    return tag.split("-", 1)[0].lower()


def detect_device_locale() -> Optional[str]:
    """Best effort device locale: explicit env override, then POSIX locale vars."""

    configured = normalize_locale_tag(os.getenv(DEVICE_LOCALE_ENV))
    if configured:
        return configured
    detected = normalize_locale_tag(default_locale())
    # Babel maps the C locale to en_US_POSIX; treat it as undetermined.
    if detected and detected.upper().endswith("POSIX"):
        return None
    return detected


LocaleStep = Callable[[str, Optional[str], Optional[str]], Optional[str]]


def _from_override(currency: str, override: Optional[str], device: Optional[str]) -> Optional[str]:
    return normalize_locale_tag(override)


def _from_currency_table(
    currency: str, override: Optional[str], device: Optional[str]
) -> Optional[str]:
    if not device:
        return None
    preferred = CURRENCY_LOCALE_MAP.get(currency.upper())
    if preferred and language_subtag(preferred) == language_subtag(device):
        return preferred
    return None


def _from_device(currency: str, override: Optional[str], device: Optional[str]) -> Optional[str]:
    return device or None


def _fixed_default(currency: str, override: Optional[str], device: Optional[str]) -> Optional[str]:
    return DEFAULT_LOCALE


LOCALE_CHAIN: tuple[LocaleStep, ...] = (
    _from_override,
    _from_currency_table,
    _from_device,
    _fixed_default,
)

_DETECT = object()


def resolve_locale(
    currency: str,
    override: Optional[str] = None,
    device_locale: Optional[str] | object = _DETECT,
    *,
    chain: Sequence[LocaleStep] = LOCALE_CHAIN,
) -> str:
    """Pick the locale used to format amounts in *currency*.

    ``device_locale`` defaults to :func:`detect_device_locale`; pass ``None``
    to simulate a device whose locale cannot be determined.
    """

    device = detect_device_locale() if device_locale is _DETECT else device_locale
    device = normalize_locale_tag(device)  # type: ignore[arg-type]
    for step in chain:
        resolved = step(currency or "", override, device)
        if resolved:
            return resolved
    return DEFAULT_LOCALE


def default_currency_from_locale(
    device_locale: Optional[str], fallback: str = DEFAULT_CURRENCY
) -> str:
    """Guess a currency for a device locale: exact tag, then language, then *fallback*."""

    tag = normalize_locale_tag(device_locale)
    if not tag:
        return fallback
    exact = LOCALE_CURRENCY_MAP.get(tag)
    if exact:
        return exact
    language = language_subtag(tag)
    for known_tag, currency in LOCALE_CURRENCY_MAP.items():
        if language_subtag(known_tag) == language:
            return currency
    return fallback


@dataclass(frozen=True)
class CurrencyPreferences:
    """Explicit display settings handed to whatever renders amounts."""

    currency: str = DEFAULT_CURRENCY
    locale_override: Optional[str] = None
    device_locale: Optional[str] = None

    @property
    def locale(self) -> str:
        return resolve_locale(self.currency, self.locale_override, self.device_locale)

    def format(
        self,
        amount: float,
        fraction_digits: Optional[int] = None,
        abbreviate: bool = False,
        currency: Optional[str] = None,
    ) -> str:
        code = currency or self.currency
        locale = resolve_locale(code, self.locale_override, self.device_locale)
        return format_money(amount, code, locale, fraction_digits, abbreviate)


def load_currency_preferences(
    preferences: PreferenceRepository,
    *,
    user_id: int,
    device_locale: Optional[str] | object = _DETECT,
    fallback_currency: str = DEFAULT_CURRENCY,
) -> CurrencyPreferences:
    """Build display settings from the stored preference row and the device."""

    device = detect_device_locale() if device_locale is _DETECT else device_locale
    device = normalize_locale_tag(device)  # type: ignore[arg-type]
    pref = preferences.get_for_user(user_id)
    if pref is not None and pref.currency:
        currency = pref.currency.upper()
    else:
        currency = default_currency_from_locale(device, fallback=fallback_currency)
    override = pref.locale if pref is not None else None
    logger.debug(
        "Currency preferences loaded",
        extra={"currency": currency, "locale_override": override, "device_locale": device},
    )
    return CurrencyPreferences(currency=currency, locale_override=override, device_locale=device)
