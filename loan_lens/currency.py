"""Currency labels for displaying calculator results.

The calculation engine has no notion of currency. Currency is only a display
label chosen by the caller, so the set of recognized codes is a configuration
value (``CurrencyOptions``) built here and handed to the CLI or stored in the
Flask config, never read from a global by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional


@dataclass(frozen=True)
class CurrencyOption:
    code: str
    label: str
    prefix: str = ""
    suffix: str = ""
    # Indian numbering groups digits as 12,34,567 instead of 1,234,567.
    indian_grouping: bool = False


_KNOWN_CURRENCIES = (
    CurrencyOption("INR", "Indian rupee", prefix="Rs. ", indian_grouping=True),
    CurrencyOption("USD", "US dollar", prefix="$"),
    CurrencyOption("EUR", "Euro", prefix="€"),
    CurrencyOption("GBP", "British pound", prefix="£"),
    CurrencyOption("JPY", "Japanese yen", prefix="¥"),
    CurrencyOption("AUD", "Australian dollar", prefix="A$"),
    CurrencyOption("CAD", "Canadian dollar", prefix="CA$"),
    CurrencyOption("PLN", "Polish złoty", suffix=" zł"),
)


class CurrencyOptions:
    """An ordered set of currencies the presentation layer accepts.

    ``default`` is used whenever a requested code is unknown.
    """

    def __init__(self, options: Iterable[CurrencyOption], default: str) -> None:
        self._options: Dict[str, CurrencyOption] = {o.code: o for o in options}
        if not self._options:
            raise ValueError("At least one currency must be configured")
        default = default.upper()
        if default not in self._options:
            raise ValueError(f"Default currency {default} is not among the configured currencies")
        self.default = default

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._options

    def __iter__(self):
        return iter(self._options.values())

    def normalize(self, code: Optional[str]) -> str:
        """Return ``code`` upper-cased if it is configured, else the default."""
        if code and code.strip().upper() in self._options:
            return code.strip().upper()
        return self.default

    def get(self, code: Optional[str]) -> CurrencyOption:
        return self._options[self.normalize(code)]


def build_currency_options(codes: Optional[str] = None, default: str = "INR") -> CurrencyOptions:
    """Build the currency configuration from a comma separated list of codes.

    Codes without a known label are accepted and displayed as ``"<CODE> "``
    prefixes. With no ``codes`` every known currency is enabled.
    """
    known = {o.code: o for o in _KNOWN_CURRENCIES}
    if not codes:
        return CurrencyOptions(_KNOWN_CURRENCIES, default)
    options = []
    for raw in codes.split(","):
        code = raw.strip().upper()
        if not code:
            continue
        options.append(known.get(code, CurrencyOption(code, code, prefix=f"{code} ")))
    return CurrencyOptions(options, default)


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(value: float, option: CurrencyOption, fraction_digits: int = 2) -> str:
    """Render ``value`` with the currency's label and digit grouping.

    >>> format_currency(1234567.891, CurrencyOption("INR", "Indian rupee", "Rs. ", indian_grouping=True))
    'Rs. 12,34,567.89'
    """
    sign = "-" if round(value, fraction_digits) < 0 else ""
    if option.indian_grouping:
        text = f"{abs(value):.{fraction_digits}f}"
        whole, _, fraction = text.partition(".")
        number = _group_indian(whole) + (f".{fraction}" if fraction else "")
    else:
        number = f"{abs(value):,.{fraction_digits}f}"
    return f"{sign}{option.prefix}{number}{option.suffix}"
