"""
SQLAlchemy ORM models for projects and their satellite records.

Embedded project documents (analyzer state, specs, budget, expenses, incomes,
updates, photo log) live in JSON columns on the project row; they have no
identity outside their project.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

from app.calculations.money import utcnow

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin for created/updated timestamps."""

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class Project(TimestampMixin, Base):
    """A real estate project (the aggregate root)."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_name = Column(String(255), nullable=False)
    strategy = Column(String(50), nullable=False)
    stage = Column(String(50), nullable=False)
    archived = Column(Boolean, default=False, nullable=False)

    # Address
    address1 = Column(String(255), nullable=False)
    address2 = Column(String(255))
    city = Column(String(100), nullable=False)
    state = Column(String(50))
    postal_code = Column(String(20))
    country = Column(String(100), nullable=False)

    # Geocoded location
    lat = Column(Float)
    lng = Column(Float)

    # Embedded documents
    property_specs = Column(JSON)
    owner_data = Column(JSON)
    flip_analyzer = Column(JSON)
    brrrr_analyzer = Column(JSON)
    budget = Column(JSON)
    updates = Column(JSON, default=list)
    photo_log = Column(JSON, default=list)
    expenses = Column(JSON, default=list)
    incomes = Column(JSON, default=list)

    # Optimistic concurrency
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    accounts = relationship(
        "Account", back_populates="project", cascade="all, delete-orphan"
    )
    companies = relationship(
        "Company", back_populates="project", cascade="all, delete-orphan"
    )

    @property
    def location(self):
        if self.lat is None or self.lng is None:
            return None
        return {"lat": self.lat, "lng": self.lng}


class Account(Base):
    """Bookkeeping account scoped to a project."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    project = relationship("Project", back_populates="accounts")


class Company(Base):
    """Vendor or contractor scoped to a project."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    label = Column(String(100))
    rating = Column(String(20))
    notes = Column(Text)

    project = relationship("Project", back_populates="companies")


class TaskList(TimestampMixin, Base):
    """Named list grouping tasks."""

    __tablename__ = "task_lists"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    created_by = Column(String(255))

    tasks = relationship(
        "Task", back_populates="task_list", cascade="all, delete-orphan"
    )


class Task(TimestampMixin, Base):
    """A to-do item on a task list."""

    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=generate_uuid)
    list_id = Column(String, ForeignKey("task_lists.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    due_date = Column(String(50))
    priority = Column(String(20), default="None", nullable=False)
    assigned_to = Column(String(255))
    status = Column(String(20), default="active", nullable=False)
    notes = Column(Text)

    task_list = relationship("TaskList", back_populates="tasks")
