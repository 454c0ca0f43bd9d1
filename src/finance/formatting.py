"""Currency / percentage rendering for prompts and template text."""

from config.settings import CURRENCY_SYMBOLS, DEFAULT_CURRENCY


def format_currency(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percentage(rate: float) -> str:
    """Fraction in, percent out: 0.0525 -> '5.25%'."""
    return f"{rate * 100:.2f}%"
