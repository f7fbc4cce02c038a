"""Logging utility functions."""

CURRENCY_SYMBOL = "£"
MASKED = "****"


def mask_amount(amount: float, show_relative: bool = True) -> str:
    """
    Mask financial amounts in logs and privacy-mode output.

    Args:
        amount: The amount to mask
        show_relative: If True, show relative scale (e.g., "~£X.XXk") instead of hiding it

    Returns:
        Masked string representation (e.g., "~£5.00k" instead of "£5000.00")
    """
    if not show_relative:
        return MASKED
    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)
    if magnitude >= 1000000:
        return f"~{sign}{CURRENCY_SYMBOL}{magnitude/1000000:.2f}M"
    elif magnitude >= 1000:
        return f"~{sign}{CURRENCY_SYMBOL}{magnitude/1000:.2f}k"
    else:
        return f"~{sign}{CURRENCY_SYMBOL}{magnitude:.2f}"


def log_amount(amount: float, privacy_mode: bool) -> str:
    """Render an amount for a log line, masked when privacy mode is on."""
    if privacy_mode:
        return mask_amount(amount)
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"
