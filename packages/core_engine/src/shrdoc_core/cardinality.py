from typing import Any, Mapping, Optional


def format_card(card: Optional[Mapping[str, Any]]) -> str:
    """Render a ``{min, max}`` cardinality as ``min..max``.

    A missing ``min`` is 0 and a missing ``max`` is unbounded (``*``).
    """
    low: Any = 0
    high: Any = "*"
    if card:
        if "min" in card:
            low = card["min"]
        if "max" in card:
            high = card["max"]
    return f"{low}..{high}"
