"""Formatting utilities for common data types."""

from typing import Optional
import re


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
    "INR": "₹",
}


def format_currency(amount: float, currency: str = "USD", decimals: int = 0) -> str:
    """
    Format currency amount for display.

    Args:
        amount: Amount to format
        currency: Currency code (default: USD)
        decimals: Number of decimal places

    Returns:
        Formatted currency string
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")

    # No decimal places for JPY
    if currency == "JPY":
        decimals = 0
    return f"{symbol}{amount:,.{decimals}f}"


def format_salary_range(
    minimum: Optional[float],
    maximum: Optional[float],
    currency: str = "USD",
) -> str:
    """
    Format a salary band for display.

    Args:
        minimum: Lower bound, if any
        maximum: Upper bound, if any
        currency: Currency code

    Returns:
        e.g. "$60,000 - $110,000", "From $60,000", "Up to $110,000" or ""
    """
    if minimum is not None and maximum is not None:
        if minimum == maximum:
            return format_currency(minimum, currency)
        return f"{format_currency(minimum, currency)} - {format_currency(maximum, currency)}"
    if minimum is not None:
        return f"From {format_currency(minimum, currency)}"
    if maximum is not None:
        return f"Up to {format_currency(maximum, currency)}"
    return ""


def slugify(text: str) -> str:
    """
    Convert text to URL-safe slug.

    Args:
        text: Text to convert

    Returns:
        URL-safe slug
    """
    text = text.lower()

    # Any run of non-alphanumerics becomes a single hyphen
    text = re.sub(r'[^a-z0-9]+', '-', text)

    return text.strip('-')


def mask_email(email: str) -> str:
    """
    Mask email address for privacy.

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., "j***@example.com")
    """
    if '@' not in email:
        return email

    local, domain = email.split('@', 1)

    if len(local) <= 2:
        masked_local = local[0] + '*'
    else:
        masked_local = local[0] + '*' * (len(local) - 2) + local[-1]

    return f"{masked_local}@{domain}"
