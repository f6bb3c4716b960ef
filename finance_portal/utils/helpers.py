"""
Helper Utilities
Money formatting shared by notifications and reports
"""


def round_money(amount: float) -> float:
    """Round to cents"""
    return round(float(amount or 0), 2)


def format_currency(amount: float, currency: str = "INR") -> str:
    """
    Format amount as currency

    Args:
        amount: Amount to format
        currency: Currency code

    Returns:
        str: Formatted currency string, e.g. ₹1,250.00
    """
    if currency == "INR":
        return f"₹{round_money(amount):,.2f}"
    return f"{currency} {round_money(amount):,.2f}"
