def format_currency(amount: float) -> str:
    """Two-decimal dollars, e.g. ``$150.00`` or ``-$12.50``."""
    rounded = round(amount + 0.0, 2)
    if rounded < 0:
        return f"-${abs(rounded):.2f}"
    return f"${abs(rounded):.2f}"
