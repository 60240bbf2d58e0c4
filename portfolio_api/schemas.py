"""Request DTOs (pydantic).

Field names are snake_case in Python and camelCase on the wire / in MongoDB
(`bg_color` <-> `bgColor`). Create DTOs reject unknown keys; update DTOs are only ever
validated after `sanitize_update` has reduced the payload to allow-listed keys.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from portfolio_api.errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)

# BSON stores integers as signed 64-bit.
Int64 = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]


def error_messages(errors: List[dict]) -> List[str]:
    """Flatten pydantic error dicts into "field: reason" strings."""
    out: List[str] = []
    for e in errors:
        loc = [str(p) for p in e.get("loc", ()) if p != "body"]
        field = ".".join(loc)
        msg = str(e.get("msg") or "invalid")
        out.append(f"{field}: {msg}" if field else msg)
    return out


def validate(model: Type[M], payload: Any) -> M:
    """Validate `payload` against `model`, raising ValidationFailed (400) on error."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(error_messages(e.errors()))


class _CreateModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class _UpdateModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


# -----------------------------
# Skills
# -----------------------------


class SkillCreate(_CreateModel):
    name: str
    category: str
    icon: str
    color: str
    bg_color: str
    order: Int64 = 0
    active: bool = True


class SkillUpdate(_UpdateModel):
    name: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    bg_color: Optional[str] = None
    order: Optional[Int64] = None
    active: Optional[bool] = None


# -----------------------------
# Projects
# -----------------------------


class ProjectCreate(_CreateModel):
    title: str
    description: str
    image: Optional[str] = None
    category: str
    technologies: List[str]
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    project_date: Optional[str] = None
    featured: bool = False
    order: Int64 = 0
    active: bool = True


class ProjectUpdate(_UpdateModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    technologies: Optional[List[str]] = None
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    project_date: Optional[str] = None
    featured: Optional[bool] = None
    order: Optional[Int64] = None
    active: Optional[bool] = None


# -----------------------------
# Courses
# -----------------------------


class CourseCreate(_CreateModel):
    name: str
    platform: str
    instructor: str
    duration: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    year: Optional[str] = None
    order: Int64 = 0
    active: bool = True


class CourseUpdate(_UpdateModel):
    name: Optional[str] = None
    platform: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    year: Optional[str] = None
    order: Optional[Int64] = None
    active: Optional[bool] = None


# -----------------------------
# Certifications
# -----------------------------


class CertificationCreate(_CreateModel):
    name: str
    issuer: str
    image: str
    link: str
    date: str
    skills: Int64
    order: Int64 = 0
    active: bool = True


class CertificationUpdate(_UpdateModel):
    name: Optional[str] = None
    issuer: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    date: Optional[str] = None
    skills: Optional[Int64] = None
    order: Optional[Int64] = None
    active: Optional[bool] = None


# -----------------------------
# Contacts
# -----------------------------


class ContactCreate(_CreateModel):
    name: str = Field(min_length=3, max_length=100)
    email: EmailStr
    subject: str = Field(min_length=3, max_length=200)
    message: str = Field(min_length=10, max_length=1000)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        if len(v) > 100:
            raise ValueError("must be at most 100 characters")
        return v.lower()


# -----------------------------
# Auth
# -----------------------------


class LoginRequest(BaseModel):
    # Any: non-string credentials must reach CredentialService, which answers 401.
    username: Any = None
    password: Any = None


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: Any = None
    password: Any = None
    role: Optional[str] = None
