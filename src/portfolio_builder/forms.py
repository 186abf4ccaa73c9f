"""
Form payloads for the editor. Each model validates user input before anything is written
to the store; `parse_form` turns pydantic errors into a field-level PortfolioValidationError.
"""

from __future__ import annotations

import re
from typing import Literal, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

from portfolio_builder.errors import PortfolioValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_url(value: str | None) -> str | None:
    v = (value or "").strip()
    if not v:
        return None
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Please enter a valid URL.")
    return v


class ProfileForm(BaseModel):
    name: str = ""
    headline: str = ""
    about_me: str = ""


class ProjectForm(BaseModel):
    title: str = Field(..., min_length=1)
    tech_stack: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    link: str | None = None

    @field_validator("title", "tech_stack", "description", mode="before")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("link")
    @classmethod
    def _link(cls, v: str | None) -> str | None:
        return _check_url(v)


class ExperienceForm(BaseModel):
    role: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    period: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)

    @field_validator("role", "company", "period", "description", mode="before")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class TestimonialForm(BaseModel):
    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    text: str = Field(..., min_length=10)
    avatar_url: str | None = None

    @field_validator("name", "role", "text", mode="before")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("avatar_url")
    @classmethod
    def _avatar(cls, v: str | None) -> str | None:
        return _check_url(v)


class ContactForm(BaseModel):
    email: str = ""
    github: str = ""
    linkedin: str = ""

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = (v or "").strip()
        if v and not _EMAIL_RE.match(v):
            raise ValueError("Please enter a valid email.")
        return v


class ThemeForm(BaseModel):
    color_scheme: Literal["light", "dark"] = "dark"
    layout: Literal["standard", "minimal", "creative"] = "standard"


class SkillForm(BaseModel):
    name: str = Field(..., min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


F = TypeVar("F", bound=BaseModel)


def parse_form(model: type[F], **values: object) -> F:
    try:
        return model(**values)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or "form"
        msg = str(err.get("msg", "invalid value"))
        # pydantic prefixes custom validator messages.
        msg = msg.removeprefix("Value error, ")
        raise PortfolioValidationError(field, msg) from e
