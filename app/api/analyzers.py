"""
Flip and BRRRR analyzer endpoints, mounted under /projects.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from app.api.common import CamelModel
from app.calculations.brrrr import MAX_YEARS, is_position
from app.db.database import get_db
from app.services import analyzers

router = APIRouter()


class FlipAnalyzerUpdate(CamelModel):
    """Partial flip wizard state."""

    arv: Optional[float] = None
    purchase_price: Optional[float] = None
    repair_cost: Optional[float] = None
    repair_cost_type: Optional[Literal["lumpSum", "perSF"]] = None
    repair_cost_per_sf: Optional[float] = Field(default=None, alias="repairCostPerSF")
    repair_cost_sf: Optional[float] = Field(default=None, alias="repairCostSF")
    buying_costs: Optional[float] = None
    holding_costs: Optional[float] = None
    selling_costs: Optional[float] = None
    financing_type: Optional[Literal["cash", "loan"]] = None
    financing_costs: Optional[float] = None
    desired_profit: Optional[float] = None
    step: Optional[int] = Field(default=None, ge=0)
    finished: Optional[bool] = None
    results: Optional[List[Any]] = None


class LineItem(CamelModel):
    """One named figure in a BRRRR phase."""

    model_config = ConfigDict(extra="allow")

    key: Optional[str] = None
    label: Optional[str] = None
    value: Optional[float] = None
    per_month: Optional[float] = None
    per_year: Optional[float] = None


class Phase2Block(CamelModel):
    """
    Phase 2 line items together with their refinance terms.

    Line items come either as ``items`` or keyed by their position
    (``"6": {"perYear": ...}``); positional entries are validated as line
    items and kept under their keys.
    """

    model_config = ConfigDict(extra="allow")

    items: List[Optional[LineItem]] = []
    refi_amount: Optional[float] = None
    years: Optional[int] = Field(default=None, le=MAX_YEARS)

    @model_validator(mode="after")
    def validate_positional_items(self):
        extra = self.__pydantic_extra__ or {}
        for name, value in extra.items():
            if is_position(name) and value is not None:
                try:
                    extra[name] = LineItem.model_validate(value).to_document()
                except ValueError as e:
                    raise ValueError(f"Invalid line item at position {name}: {e}")
        return self


class Phase2Inputs(CamelModel):
    """Refinance assumptions; unknown keys are kept as sent."""

    model_config = ConfigDict(extra="allow")

    refi_amount: Optional[float] = None
    years: Optional[int] = Field(default=None, le=MAX_YEARS)
    loan_to_value: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_years: Optional[int] = None
    refi_closing_costs: Optional[float] = None


class BrrrrAnalyzerUpdate(CamelModel):
    """Partial BRRRR analyzer state."""

    phase1: Optional[List[Optional[LineItem]]] = None
    phase2: Optional[Union[List[Optional[LineItem]], Phase2Block]] = None
    phase2_inputs: Optional[Phase2Inputs] = Field(default=None, alias="phase2Inputs")
    financing_strategy: Optional[str] = None
    finished: Optional[bool] = None


@router.get("/{project_id}/flip-analyzer")
async def get_flip_analyzer(
    project_id: str,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Get the stored flip analyzer state."""
    return analyzers.get_flip_analyzer(db, project_id)


@router.put("/{project_id}/flip-analyzer")
async def update_flip_analyzer(
    project_id: str,
    data: FlipAnalyzerUpdate,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Save flip wizard progress."""
    return analyzers.update_flip_analyzer(db, project_id, data.to_document())


@router.get("/{project_id}/brrrr-analyzer")
async def get_brrrr_analyzer(
    project_id: str,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Get the stored BRRRR analyzer state."""
    return analyzers.get_brrrr_analyzer(db, project_id)


@router.put("/{project_id}/brrrr-analyzer")
async def update_brrrr_analyzer(
    project_id: str,
    data: BrrrrAnalyzerUpdate,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Save BRRRR inputs; finished submissions recompute the projection."""
    return analyzers.update_brrrr_analyzer(db, project_id, data.to_document())
