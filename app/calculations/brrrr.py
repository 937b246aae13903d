"""
BRRRR Projection Engine

Buy, Rehab, Rent, Refinance, Repeat. Turns the two phases of analyzer input
into the cash-needed chart and the long-term return projection.

Phase 1 holds acquisition/rehab line items, phase 2 the stabilized operating
figures. Line items are looked up by ``key``. Older clients send unkeyed
items in a fixed order, so each figure also has a legacy position that is
used only when no item carries the key. Phase 2 may also arrive as an object
whose line items sit under their positions (``{"6": {...}, "years": 2}``).
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from app.calculations.money import as_number, cash_outlay, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_YEARS = 15
DEFAULT_APPRECIATION_RATE = 0.03
MAX_YEARS = 100

# (key, legacy position, field)
BASE_EQUITY = ("equity", 0, "value")
CASH_AT_CLOSING = ("cashAtClosing", 1, "value")
CASH_AT_STABILIZATION = ("cashAtStabilization", 4, "value")
NET_CASH_FLOW = ("cashFlowBeforeDebt", 6, "perYear")

# A list of line items, or line items indexed by position
LineItems = Union[Sequence[Mapping[str, Any]], Mapping[int, Mapping[str, Any]]]


def is_position(name: Any) -> bool:
    """True for an integer key or a string of digits."""
    if isinstance(name, bool):
        return False
    return isinstance(name, int) or (isinstance(name, str) and name.isdecimal())


def find_line_item(items: LineItems, key: str, position: int) -> Optional[Mapping[str, Any]]:
    """
    Find a line item by key, falling back to its legacy position.

    The positional fallback only accepts an item that has no key of its own,
    so a reordered keyed list never yields the wrong figure.
    """
    entries = items.values() if isinstance(items, Mapping) else items
    for item in entries:
        if isinstance(item, Mapping) and item.get("key") == key:
            return item

    if isinstance(items, Mapping):
        item = items.get(position)
    elif 0 <= position < len(items):
        item = items[position]
    else:
        item = None

    if isinstance(item, Mapping) and not item.get("key"):
        return item
    return None


def line_item_figure(items: LineItems, figure: Tuple[str, int, str]) -> Any:
    """Raw figure for a (key, position, field) lookup, None when absent."""
    key, position, field = figure
    item = find_line_item(items, key, position)
    if item is None:
        return None
    return item.get(field)


def split_phase2(
    phase2: Union[LineItems, Mapping[str, Any]],
) -> Tuple[LineItems, Dict[str, Any]]:
    """
    Separate phase 2 line items from its refinance terms.

    Accepts a plain list of line items, a block of the form
    ``{"items": [...], "refiAmount": ..., "years": ...}``, or an object with
    line items under their positions next to the terms:
    ``{"6": {"perYear": ...}, "refiAmount": ..., "years": ...}``.
    """
    if not isinstance(phase2, Mapping):
        return phase2 or [], {}

    if "items" in phase2:
        items = phase2.get("items") or []
        terms = {k: v for k, v in phase2.items() if k != "items"}
        return items, terms

    items = {int(k): v for k, v in phase2.items() if is_position(k)}
    terms = {k: v for k, v in phase2.items() if not is_position(k)}
    return items, terms


def _term(name: str, *sources: Optional[Mapping[str, Any]]) -> Any:
    for source in sources:
        if source and source.get(name) is not None:
            return source[name]
    return None


def cash_needed_over_time(
    phase1: LineItems, refi_amount: Any
) -> List[Dict[str, Any]]:
    """Cash outlay at closing, at stabilization and after the refinance."""
    return [
        {"x": "Closing", "y": cash_outlay(line_item_figure(phase1, CASH_AT_CLOSING))},
        {
            "x": "Stabilized",
            "y": cash_outlay(line_item_figure(phase1, CASH_AT_STABILIZATION)),
        },
        {"x": "After Refi", "y": cash_outlay(refi_amount)},
    ]


def long_term_returns(
    base_equity: float,
    net_cash_flow: float,
    years: int,
    appreciation_rate: float = DEFAULT_APPRECIATION_RATE,
) -> List[Dict[str, Any]]:
    """
    Year-by-year return projection.

    Each year adds base_equity * ((1 + rate) ** year - 1) to the cumulative
    appreciation, so growth compounds from the original equity rather than
    from the running total. Net cash flow is a flat annual figure.

    Args:
        base_equity: Equity at the start of the hold
        net_cash_flow: Annual cash flow before debt
        years: Projection horizon; zero or negative yields no rows
        appreciation_rate: Annual appreciation as decimal

    Returns:
        List of yearly rows with cumulative figures rounded to whole dollars

    Raises:
        ValueError: If years exceeds MAX_YEARS
    """
    if years > MAX_YEARS:
        raise ValueError(f"Projection horizon is limited to {MAX_YEARS} years")

    rows = []
    cum_appreciation = 0.0
    cum_net_cash_flow = 0.0

    for year in range(1, years + 1):
        cum_appreciation += base_equity * (1 + appreciation_rate) ** year - base_equity
        cum_net_cash_flow += net_cash_flow
        total_return = base_equity + cum_appreciation + cum_net_cash_flow

        rows.append(
            {
                "x": f"Year {year}",
                "equity": round_half_up(base_equity),
                "appreciation": round_half_up(cum_appreciation),
                "netCashFlow": round_half_up(cum_net_cash_flow),
                "totalReturn": round_half_up(total_return),
            }
        )

    return rows


def compute_projection(
    phase1: LineItems,
    phase2: Union[LineItems, Mapping[str, Any]],
    phase2_inputs: Optional[Mapping[str, Any]] = None,
    default_years: int = DEFAULT_YEARS,
    appreciation_rate: float = DEFAULT_APPRECIATION_RATE,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Compute the BRRRR analyzer results.

    ``refiAmount`` and ``years`` are read from the phase 2 block first, then
    from the refinance inputs. Missing figures count as 0; a missing horizon
    uses ``default_years``.
    """
    phase1 = phase1 or []
    phase2_items, phase2_terms = split_phase2(phase2)

    refi_amount = _term("refiAmount", phase2_terms, phase2_inputs)
    years = _term("years", phase2_terms, phase2_inputs)
    years = default_years if years is None else int(years)

    base_equity = as_number(line_item_figure(phase1, BASE_EQUITY)) or 0.0
    net_cash_flow = as_number(line_item_figure(phase2_items, NET_CASH_FLOW)) or 0.0

    logger.debug(
        f"BRRRR projection: equity={base_equity} cash_flow={net_cash_flow} years={years}"
    )

    return {
        "cashNeededOverTime": cash_needed_over_time(phase1, refi_amount),
        "longTermReturns": long_term_returns(
            base_equity, net_cash_flow, years, appreciation_rate
        ),
    }
