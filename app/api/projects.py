"""
Project management API endpoints.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from dateutil.parser import isoparse
from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from app.api.common import CamelModel, is_finite_document, new_embedded_id
from app.calculations.money import isoformat_utc
from app.config import get_settings
from app.db.database import get_db
from app.db.models import Project
from app.exceptions import GeocodingError, NotFound, ValidationError
from app.services.analyzers import get_project
from app.services.geocoding import GoogleGeocoder, format_address, get_geocoder

logger = logging.getLogger(__name__)
router = APIRouter()

ADDRESS_FIELDS = ["address1", "address2", "city", "state", "postal_code", "country"]
GEOCODE_FAILED = "Could not geocode address. Please enter a valid, complete address."


class ProjectCreate(CamelModel):
    """Schema for creating a project."""

    address1: str
    address2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    project_name: str
    strategy: str
    stage: str


class ProjectUpdate(CamelModel):
    """Schema for updating a project."""

    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    project_name: Optional[str] = None
    strategy: Optional[str] = None
    stage: Optional[str] = None
    archived: Optional[bool] = None


class Location(CamelModel):
    lat: float
    lng: float


class ProjectResponse(CamelModel):
    """Schema for project response."""

    id: str
    project_name: str
    strategy: str
    stage: str
    archived: bool
    address1: str
    address2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    location: Optional[Location] = None
    property_specs: Dict[str, Any] = {}
    owner_data: Dict[str, Any] = {}
    flip_analyzer: Dict[str, Any] = {}
    brrrr_analyzer: Dict[str, Any] = {}
    budget: Dict[str, Any] = {}
    updates: List[Dict[str, Any]] = []
    photo_log: List[Dict[str, Any]] = []
    expenses: List[Dict[str, Any]] = []
    incomes: List[Dict[str, Any]] = []
    version: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProjectUpdateEntryCreate(CamelModel):
    """Schema for posting a progress update on a project."""

    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    photos: List[str] = []
    display_at: Optional[str] = None


class ProjectUpdateEntryEdit(CamelModel):
    """Schema for editing a progress update."""

    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    photos: Optional[List[str]] = None
    display_at: Optional[str] = None


class PropertySpecs(CamelModel):
    """Physical description of the property."""

    property_type: Optional[str] = None
    property_style: Optional[str] = None
    basement: Optional[str] = None
    parking: Optional[str] = None
    year_built: Optional[str] = None
    no_of_units: Optional[int] = None
    stories: Optional[int] = None
    rooms: Optional[int] = None
    garages: Optional[int] = None
    square_feet: Optional[float] = None
    beds: Optional[int] = None
    full_baths: Optional[int] = None
    half_baths: Optional[int] = None
    lot_size: Optional[float] = None
    lot_size_unit: Optional[str] = None
    lot_frontage: Optional[float] = None
    lot_depth: Optional[float] = None
    land_use: Optional[str] = None


class OwnerData(CamelModel):
    """Lead information about the current owner."""

    lead_temperature: Optional[str] = None
    lead_source: Optional[str] = None
    lead_notes: Optional[str] = None


class PhotoEdit(CamelModel):
    """Editable photo log fields."""

    date: Optional[str] = None
    description: Optional[str] = None


def project_to_response(project: Project) -> ProjectResponse:
    """Convert Project model to response schema."""
    return ProjectResponse(
        id=project.id,
        project_name=project.project_name,
        strategy=project.strategy,
        stage=project.stage,
        archived=bool(project.archived),
        address1=project.address1,
        address2=project.address2,
        city=project.city,
        state=project.state,
        postal_code=project.postal_code,
        country=project.country,
        location=project.location,
        property_specs=project.property_specs or {},
        owner_data=project.owner_data or {},
        flip_analyzer=project.flip_analyzer or {},
        brrrr_analyzer=project.brrrr_analyzer or {},
        budget=project.budget or {},
        updates=project.updates or [],
        photo_log=project.photo_log or [],
        expenses=project.expenses or [],
        incomes=project.incomes or [],
        version=project.version,
        created_at=project.created_at.isoformat() if project.created_at else None,
        updated_at=project.updated_at.isoformat() if project.updated_at else None,
    )


def parse_display_at(value: Optional[str]) -> str:
    """Client-supplied display time, or now when missing or unparsable."""
    if value:
        try:
            return isoformat_utc(isoparse(value))
        except ValueError:
            logger.debug(f"Ignoring unparsable displayAt {value!r}")
    return isoformat_utc()


def find_embedded(items: Optional[List[Dict]], item_id: str) -> Optional[int]:
    """Index of the embedded document with the given id."""
    for idx, item in enumerate(items or []):
        if item.get("id") == item_id:
            return idx
    return None


async def geocode_or_fail(geocoder: GoogleGeocoder, address: str) -> Dict[str, float]:
    location = await geocoder.geocode(address)
    if not location:
        raise GeocodingError(GEOCODE_FAILED)
    return location


@router.get("/", response_model=List[ProjectResponse])
async def list_projects(db: Session = Depends(get_db)):
    """List all projects."""
    projects = db.query(Project).order_by(Project.created_at).all()
    return [project_to_response(p) for p in projects]


@router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    geocoder: GoogleGeocoder = Depends(get_geocoder),
):
    """Create a project at a geocoded address."""
    address = format_address(
        project_data.address1,
        project_data.city,
        project_data.country,
        address2=project_data.address2,
        state=project_data.state,
        postal_code=project_data.postal_code,
    )
    location = await geocode_or_fail(geocoder, address)

    db_project = Project(
        **project_data.model_dump(),
        lat=location["lat"],
        lng=location["lng"],
        updates=[],
        photo_log=[],
        expenses=[],
        incomes=[],
    )

    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    logger.info(f"Created project {db_project.id} ({db_project.project_name})")

    return project_to_response(db_project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project_by_id(
    project_id: str,
    db: Session = Depends(get_db),
):
    """Get a project by ID."""
    return project_to_response(get_project(db, project_id))


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    db: Session = Depends(get_db),
    geocoder: GoogleGeocoder = Depends(get_geocoder),
):
    """Update a project, re-geocoding when its address changes."""
    db_project = get_project(db, project_id)
    update_data = project_data.model_dump(exclude_unset=True)

    address_changed = any(
        update_data.get(field) and update_data[field] != getattr(db_project, field)
        for field in ADDRESS_FIELDS
    )
    if address_changed:
        merged = {
            field: update_data.get(field) or getattr(db_project, field)
            for field in ADDRESS_FIELDS
        }
        address = format_address(
            merged["address1"],
            merged["city"],
            merged["country"],
            address2=merged["address2"],
            state=merged["state"],
            postal_code=merged["postal_code"],
        )
        location = await geocode_or_fail(geocoder, address)
        db_project.lat = location["lat"]
        db_project.lng = location["lng"]

    # Update only provided fields
    for field, value in update_data.items():
        setattr(db_project, field, value)

    db.commit()
    db.refresh(db_project)

    return project_to_response(db_project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
):
    """Delete a project and its accounts and companies."""
    db_project = get_project(db, project_id)
    db.delete(db_project)
    db.commit()
    logger.info(f"Deleted project {project_id}")
    return Response(status_code=204)


@router.post("/{project_id}/duplicate", response_model=ProjectResponse, status_code=201)
async def duplicate_project(
    project_id: str,
    db: Session = Depends(get_db),
):
    """Copy a project under a new name; the copy starts unarchived."""
    original = get_project(db, project_id)

    copied_fields = ADDRESS_FIELDS + [
        "strategy",
        "stage",
        "lat",
        "lng",
        "property_specs",
        "owner_data",
        "flip_analyzer",
        "brrrr_analyzer",
        "budget",
        "updates",
        "photo_log",
        "expenses",
        "incomes",
    ]
    duplicate = Project(
        project_name=f"Copy of {original.project_name}",
        **{field: copy.deepcopy(getattr(original, field)) for field in copied_fields},
    )

    db.add(duplicate)
    db.commit()
    db.refresh(duplicate)

    return project_to_response(duplicate)


# ============================================================================
# PROGRESS UPDATES
# ============================================================================


@router.get("/{project_id}/updates")
async def list_project_updates(project_id: str, db: Session = Depends(get_db)):
    """List progress updates, newest first."""
    project = get_project(db, project_id)
    return list(reversed(project.updates or []))


@router.post("/{project_id}/updates", status_code=201)
async def create_project_update(
    project_id: str,
    data: ProjectUpdateEntryCreate,
    db: Session = Depends(get_db),
):
    """Post a progress update."""
    project = get_project(db, project_id)

    if not data.title or not data.description:
        raise ValidationError("Title and description are required.")

    entry = {
        "id": new_embedded_id(),
        "title": data.title,
        "description": data.description,
        "author": data.author or get_settings().default_update_author,
        "photos": data.photos,
        "displayAt": parse_display_at(data.display_at),
        "createdAt": isoformat_utc(),
    }

    project.updates = (project.updates or []) + [entry]
    flag_modified(project, "updates")
    db.commit()

    return entry


@router.put("/{project_id}/updates/{update_id}")
async def edit_project_update(
    project_id: str,
    update_id: str,
    data: ProjectUpdateEntryEdit,
    db: Session = Depends(get_db),
):
    """Edit a progress update."""
    project = get_project(db, project_id)
    updates = list(project.updates or [])
    idx = find_embedded(updates, update_id)
    if idx is None:
        raise NotFound("Update not found")

    changes = data.to_document()
    if "displayAt" in changes:
        changes["displayAt"] = parse_display_at(changes["displayAt"])
    updates[idx] = {**updates[idx], **changes}

    project.updates = updates
    flag_modified(project, "updates")
    db.commit()

    return updates[idx]


@router.delete("/{project_id}/updates/{update_id}")
async def delete_project_update(
    project_id: str,
    update_id: str,
    db: Session = Depends(get_db),
):
    """Delete a progress update."""
    project = get_project(db, project_id)
    idx = find_embedded(project.updates, update_id)
    if idx is None:
        raise NotFound("Update not found")

    project.updates = [u for u in project.updates if u.get("id") != update_id]
    flag_modified(project, "updates")
    db.commit()

    return {"success": True}


# ============================================================================
# EMBEDDED DOCUMENTS
# ============================================================================


def _replace_document(db: Session, project: Project, field: str, value: Any) -> Any:
    setattr(project, field, value)
    flag_modified(project, field)
    db.commit()
    return value


@router.get("/{project_id}/property-specs")
async def get_property_specs(project_id: str, db: Session = Depends(get_db)):
    """Get property specs for a project."""
    return get_project(db, project_id).property_specs or {}


@router.put("/{project_id}/property-specs")
async def update_property_specs(
    project_id: str,
    data: PropertySpecs,
    db: Session = Depends(get_db),
):
    """Replace property specs for a project."""
    project = get_project(db, project_id)
    return _replace_document(db, project, "property_specs", data.to_document())


@router.get("/{project_id}/owner-data")
async def get_owner_data(project_id: str, db: Session = Depends(get_db)):
    """Get owner data for a project."""
    return get_project(db, project_id).owner_data or {}


@router.put("/{project_id}/owner-data")
async def update_owner_data(
    project_id: str,
    data: OwnerData,
    db: Session = Depends(get_db),
):
    """Replace owner data for a project."""
    project = get_project(db, project_id)
    return _replace_document(db, project, "owner_data", data.to_document())


@router.get("/{project_id}/budget")
async def get_budget(project_id: str, db: Session = Depends(get_db)):
    """Get the budget for a project."""
    return get_project(db, project_id).budget or {}


@router.put("/{project_id}/budget")
async def update_budget(
    project_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Replace the budget for a project."""
    project = get_project(db, project_id)
    if not is_finite_document(data):
        raise ValidationError("Budget figures must be finite numbers")
    return _replace_document(db, project, "budget", data)


# ============================================================================
# PHOTO LOG
# ============================================================================


@router.get("/{project_id}/photo-log")
async def list_photos(project_id: str, db: Session = Depends(get_db)):
    """List photo log entries for a project."""
    return get_project(db, project_id).photo_log or []


@router.put("/{project_id}/photo-log/{photo_id}")
async def edit_photo(
    project_id: str,
    photo_id: str,
    data: PhotoEdit,
    db: Session = Depends(get_db),
):
    """Update a photo's date or description."""
    project = get_project(db, project_id)
    photos = list(project.photo_log or [])
    idx = find_embedded(photos, photo_id)
    if idx is None:
        raise NotFound("Photo not found")

    photo = dict(photos[idx])
    if data.date:
        photo["date"] = data.date
    if data.description is not None:
        photo["description"] = data.description
    photos[idx] = photo

    _replace_document(db, project, "photo_log", photos)
    return photo


@router.delete("/{project_id}/photo-log/{photo_id}")
async def delete_photo(
    project_id: str,
    photo_id: str,
    db: Session = Depends(get_db),
):
    """Remove a photo from the photo log."""
    project = get_project(db, project_id)
    if find_embedded(project.photo_log, photo_id) is None:
        raise NotFound("Photo not found")

    remaining = [p for p in project.photo_log if p.get("id") != photo_id]
    _replace_document(db, project, "photo_log", remaining)
    return {"success": True}
