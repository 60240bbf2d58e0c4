from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Type

from pydantic import BaseModel

from portfolio_api import db
from portfolio_api.schemas import (
    CertificationCreate,
    CertificationUpdate,
    CourseCreate,
    CourseUpdate,
    ProjectCreate,
    ProjectUpdate,
    SkillCreate,
    SkillUpdate,
)

SortKey = Tuple[Tuple[str, int], ...]

ASC = 1
DESC = -1


@dataclass(frozen=True)
class ResourceSpec:
    """Everything the generic resource service needs to know about one collection."""

    label: str  # used in messages: "<label> with ID <id> not found"
    collection: str
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    sort: SortKey
    # Fields listable with ?<field>=value (bound as literal equality).
    filters: Tuple[str, ...] = ()
    # Fields holding a list of strings; the only container values an update may carry.
    string_lists: Tuple[str, ...] = ()

    @property
    def allowed_fields(self) -> Tuple[str, ...]:
        """Update allow-list: the wire names of every update DTO field."""
        return tuple(f.alias or name for name, f in self.update_model.model_fields.items())


SKILL = ResourceSpec(
    label="Skill",
    collection=db.SKILLS,
    create_model=SkillCreate,
    update_model=SkillUpdate,
    sort=(("order", ASC), ("name", ASC)),
    filters=("category",),
)

PROJECT = ResourceSpec(
    label="Project",
    collection=db.PROJECTS,
    create_model=ProjectCreate,
    update_model=ProjectUpdate,
    sort=(("order", ASC), ("createdAt", DESC)),
    filters=("category",),
    string_lists=("technologies",),
)

COURSE = ResourceSpec(
    label="Course",
    collection=db.COURSES,
    create_model=CourseCreate,
    update_model=CourseUpdate,
    sort=(("year", DESC), ("order", ASC), ("name", ASC)),
    filters=("year",),
)

CERTIFICATION = ResourceSpec(
    label="Certification",
    collection=db.CERTIFICATIONS,
    create_model=CertificationCreate,
    update_model=CertificationUpdate,
    sort=(("order", ASC), ("date", DESC)),
    filters=("issuer",),
)
