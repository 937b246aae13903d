"""
Fix-and-Flip Calculations

Offer price and profitability for a renovate-and-resell deal. All inputs are
dollar amounts; percentages are returned as whole numbers (12.5 = 12.5%).
"""

from typing import Dict, List, Optional

from app.calculations.money import percent, round_half_up

REPAIR_LUMP_SUM = "lumpSum"
REPAIR_PER_SF = "perSF"
FINANCING_CASH = "cash"
FINANCING_LOAN = "loan"


def calculate_repair_cost(
    repair_cost_type: str,
    repair_cost: Optional[float] = None,
    repair_cost_per_sf: Optional[float] = None,
    repair_cost_sf: Optional[float] = None,
) -> float:
    """
    Resolve the rehab budget.

    Per-square-foot estimates multiply rate by area; lump sums are used as is.
    """
    if repair_cost_type == REPAIR_PER_SF:
        return (repair_cost_per_sf or 0.0) * (repair_cost_sf or 0.0)
    return repair_cost or 0.0


def calculate_flip(
    arv: float,
    purchase_price: float,
    repair_cost_type: str = REPAIR_LUMP_SUM,
    repair_cost: Optional[float] = None,
    repair_cost_per_sf: Optional[float] = None,
    repair_cost_sf: Optional[float] = None,
    buying_costs: float = 0.0,
    holding_costs: float = 0.0,
    selling_costs: float = 0.0,
    financing_type: str = FINANCING_CASH,
    financing_costs: float = 0.0,
    desired_profit: float = 0.0,
) -> List[Dict]:
    """
    Calculate flip profitability.

    Financing costs only count for loan-financed deals. The maximum offer is
    the purchase price at which the deal returns exactly the desired profit.

    Returns:
        Ordered list of {"key", "label", "value"} result rows
    """
    repair = calculate_repair_cost(
        repair_cost_type, repair_cost, repair_cost_per_sf, repair_cost_sf
    )
    financing = financing_costs if financing_type == FINANCING_LOAN else 0.0

    # Everything except the purchase price itself
    project_costs = repair + buying_costs + holding_costs + selling_costs + financing
    total_cost = purchase_price + project_costs

    profit = arv - total_cost
    max_offer = arv - project_costs - desired_profit

    rows = [
        ("repairCost", "Repair Cost", repair),
        ("financingCosts", "Financing Costs", financing),
        ("totalCost", "Total Project Cost", total_cost),
        ("maxOfferPrice", "Maximum Offer Price", max_offer),
        ("profit", "Projected Profit", profit),
        ("roi", "Return on Investment (%)", percent(profit, total_cost)),
        ("profitMargin", "Profit Margin (%)", percent(profit, arv)),
    ]

    results = [
        {"key": key, "label": label, "value": round_half_up(value, 2)}
        for key, label, value in rows
    ]
    results.append(
        {
            "key": "meetsDesiredProfit",
            "label": "Meets Desired Profit",
            "value": profit >= desired_profit,
        }
    )
    return results
