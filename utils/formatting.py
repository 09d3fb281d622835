"""
Formatting utilities.
"""


def format_currency(amount: float, currency: str = "USD", decimals: int = 0) -> str:
    """
    Format an amount as currency.

    Negative amounts put the sign before the symbol (-$500).

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).
        decimals: Number of decimal places.

    Returns:
        Formatted currency string.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    sign = "-" if amount < 0 and round(abs(amount), decimals) != 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_signed_currency(amount: float, currency: str = "USD", decimals: int = 0) -> str:
    """Currency with an explicit + for non-negative amounts."""
    formatted = format_currency(amount, currency, decimals)
    return formatted if formatted.startswith("-") else f"+{formatted}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_number(value: float, decimals: int = 0) -> str:
    """Thousands-separated number, e.g. 48,000."""
    return f"{value:,.{decimals}f}"
