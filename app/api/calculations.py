"""
Analyzer calculation API endpoints.

These endpoints accept inputs and return calculated results without
touching any project. The analyzer wizards call them to preview figures.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter
from pydantic import Field

from app.api.analyzers import LineItem, Phase2Block, Phase2Inputs
from app.api.common import CamelModel
from app.calculations import brrrr, flip
from app.config import get_settings
from app.exceptions import ValidationError

router = APIRouter()


class FlipCalculationInput(CamelModel):
    """Input for the flip calculation."""

    arv: float
    purchase_price: float
    repair_cost_type: Literal["lumpSum", "perSF"] = "lumpSum"
    repair_cost: Optional[float] = None
    repair_cost_per_sf: Optional[float] = Field(default=None, alias="repairCostPerSF")
    repair_cost_sf: Optional[float] = Field(default=None, alias="repairCostSF")
    buying_costs: float = 0.0
    holding_costs: float = 0.0
    selling_costs: float = 0.0
    financing_type: Literal["cash", "loan"] = "cash"
    financing_costs: float = 0.0
    desired_profit: float = 0.0


class FlipCalculationResponse(CamelModel):
    results: List[Dict[str, Any]]


class BrrrrCalculationInput(CamelModel):
    """Input for the BRRRR projection."""

    phase1: List[Optional[LineItem]] = []
    phase2: Union[List[Optional[LineItem]], Phase2Block] = []
    phase2_inputs: Optional[Phase2Inputs] = Field(default=None, alias="phase2Inputs")


class BrrrrCalculationResponse(CamelModel):
    cash_needed_over_time: List[Dict[str, Any]]
    long_term_returns: List[Dict[str, Any]]


@router.post("/flip", response_model=FlipCalculationResponse)
async def calculate_flip(inputs: FlipCalculationInput):
    """Calculate offer price and profitability for a flip."""
    try:
        results = flip.calculate_flip(**inputs.model_dump())
    except ValueError as e:
        raise ValidationError(f"Cannot calculate flip: {e}")
    return FlipCalculationResponse(results=results)


@router.post("/brrrr", response_model=BrrrrCalculationResponse)
async def calculate_brrrr(inputs: BrrrrCalculationInput):
    """Project cash needs and long-term returns for a BRRRR deal."""
    settings = get_settings()
    document = inputs.to_document()

    try:
        projection = brrrr.compute_projection(
            document.get("phase1", []),
            document.get("phase2", []),
            document.get("phase2Inputs"),
            default_years=settings.brrrr_default_years,
            appreciation_rate=settings.brrrr_appreciation_rate,
        )
    except ValueError as e:
        raise ValidationError(f"Cannot project BRRRR returns: {e}")

    return BrrrrCalculationResponse(
        cash_needed_over_time=projection["cashNeededOverTime"],
        long_term_returns=projection["longTermReturns"],
    )
