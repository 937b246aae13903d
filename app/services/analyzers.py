"""
Persistence for the analyzer state embedded on a project.

Each update is one read-modify-write of the project row. The row's version
column turns a racing write into a ConflictError instead of a lost update.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from app.calculations.brrrr import compute_projection
from app.calculations.money import isoformat_utc
from app.config import get_settings
from app.db.models import Project
from app.exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

BRRRR_DEFAULTS = {
    "phase1": [],
    "phase2": [],
    "phase2Inputs": {},
    "financingStrategy": "cash",
    "results": {},
    "finished": False,
}


def get_project(db: Session, project_id: str) -> Project:
    """Load a project or raise NotFound."""
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFound("Project not found")
    return project


def merge_flip_state(
    previous: Optional[Dict[str, Any]],
    incoming: Dict[str, Any],
    final_step: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Merge a flip wizard submission into the stored state.

    Raises:
        ValidationError: If the submission finishes the wizard before its
            last step
    """
    state = {**(previous or {}), **incoming}

    if incoming.get("finished") and (state.get("step") or 0) < final_step:
        raise ValidationError(
            f"Flip analysis can only be finished from step {final_step}"
        )

    state["lastUpdated"] = isoformat_utc(now)
    return state


def merge_brrrr_state(
    previous: Optional[Dict[str, Any]],
    incoming: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Merge a BRRRR submission into the stored state.

    Results are recomputed only for a finished submission carrying both
    phases; partial saves keep the stored results.

    Raises:
        ValidationError: If the figures cannot be projected
    """
    settings = get_settings()
    previous = {**BRRRR_DEFAULTS, **(previous or {})}

    phase2_inputs = incoming.get("phase2Inputs")
    if phase2_inputs is None:
        phase2_inputs = previous.get("phase2Inputs")
    financing_strategy = incoming.get("financingStrategy")
    if financing_strategy is None:
        financing_strategy = previous.get("financingStrategy")

    results = previous.get("results") or {}
    if (
        incoming.get("finished")
        and incoming.get("phase1") is not None
        and incoming.get("phase2") is not None
    ):
        try:
            results = compute_projection(
                incoming["phase1"],
                incoming["phase2"],
                phase2_inputs,
                default_years=settings.brrrr_default_years,
                appreciation_rate=settings.brrrr_appreciation_rate,
            )
        except ValueError as e:
            raise ValidationError(f"Cannot project BRRRR returns: {e}")

    return {
        **previous,
        **incoming,
        "phase2Inputs": phase2_inputs,
        "financingStrategy": financing_strategy,
        "results": results,
        "lastUpdated": isoformat_utc(now),
    }


def get_flip_analyzer(db: Session, project_id: str) -> Dict[str, Any]:
    return get_project(db, project_id).flip_analyzer or {}


def update_flip_analyzer(
    db: Session, project_id: str, incoming: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply a flip wizard submission and persist it."""
    project = get_project(db, project_id)
    state = merge_flip_state(
        project.flip_analyzer, incoming, get_settings().flip_final_step
    )

    project.flip_analyzer = state
    flag_modified(project, "flip_analyzer")
    db.commit()
    logger.info(f"Saved flip analyzer for project {project_id} (step {state.get('step')})")
    return state


def get_brrrr_analyzer(db: Session, project_id: str) -> Dict[str, Any]:
    return get_project(db, project_id).brrrr_analyzer or {}


def update_brrrr_analyzer(
    db: Session, project_id: str, incoming: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply a BRRRR submission, recomputing results when finished, and persist it."""
    project = get_project(db, project_id)
    state = merge_brrrr_state(project.brrrr_analyzer, incoming)

    project.brrrr_analyzer = state
    flag_modified(project, "brrrr_analyzer")
    db.commit()
    logger.info(
        f"Saved BRRRR analyzer for project {project_id} (finished={state.get('finished')})"
    )
    return state
