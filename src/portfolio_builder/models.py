from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Callable
from urllib.parse import quote

from portfolio_builder.config import settings


class ColorScheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Layout(str, Enum):
    STANDARD = "standard"
    MINIMAL = "minimal"
    CREATIVE = "creative"

    @classmethod
    def resolve(cls, value: str | None) -> Layout:
        """Map a stored layout value to a layout kind; anything unknown renders as standard."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.STANDARD


@dataclass(frozen=True)
class Project:
    id: str
    title: str
    tech_stack: str
    description: str
    link: str | None = None
    image_url: str | None = None

    def tech_list(self) -> list[str]:
        return [t.strip() for t in self.tech_stack.split(",") if t.strip()]


@dataclass(frozen=True)
class Skill:
    id: str
    name: str


@dataclass(frozen=True)
class Experience:
    id: str
    role: str
    company: str
    period: str
    description: str


@dataclass(frozen=True)
class Testimonial:
    id: str
    name: str
    role: str
    text: str
    avatar_url: str | None = None


@dataclass(frozen=True)
class Contact:
    email: str = ""
    github: str = ""
    linkedin: str = ""


@dataclass(frozen=True)
class ThemeSettings:
    # Raw values so documents written by other versions still load; see Layout.resolve.
    color_scheme: str = ColorScheme.DARK.value
    layout: str = Layout.STANDARD.value


@dataclass(frozen=True)
class PortfolioDocument:
    name: str = ""
    headline: str = ""
    about_me: str = ""
    projects: tuple[Project, ...] = ()
    skills: tuple[Skill, ...] = ()
    experiences: tuple[Experience, ...] = ()
    testimonials: tuple[Testimonial, ...] = ()
    contact: Contact = field(default_factory=Contact)
    theme: ThemeSettings = field(default_factory=ThemeSettings)


TEXT_FIELDS = ("name", "headline", "about_me")

# List-valued document fields and the entity each one holds.
LIST_FIELDS: dict[str, type] = {
    "projects": Project,
    "skills": Skill,
    "experiences": Experience,
    "testimonials": Testimonial,
}


def default_avatar_url(name: str) -> str:
    return f"{settings.avatar_base_url}{quote(name.strip())}"


def check_text_fields(entity: Any) -> None:
    """Every field of an entity is a string; fields defaulting to None may also be None."""
    for f in fields(entity):
        value = getattr(entity, f.name)
        if value is None and f.default is None:
            continue
        if not isinstance(value, str):
            raise TypeError(f"{type(entity).__name__}.{f.name} must be a string")


def check_items(field_name: str, items: Any) -> tuple[Any, ...]:
    """
    Validate one list field of a document: entity type, field types, unique ids and,
    for skills, names unique ignoring case. Raises TypeError/ValueError.
    """
    if not isinstance(items, (list, tuple)):
        raise TypeError(f"{field_name} must be a list")
    item_type = LIST_FIELDS[field_name]
    for item in items:
        if not isinstance(item, item_type):
            raise TypeError(f"{field_name} items must be {item_type.__name__}")
        check_text_fields(item)
    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise ValueError(f"{field_name} ids must be unique")
    if item_type is Skill:
        names = [item.name.strip().lower() for item in items]
        if len(set(names)) != len(names):
            raise ValueError("skill names must be unique")
    return tuple(items)


def seed_document(new_id: Callable[[], str]) -> PortfolioDocument:
    skills = ["JavaScript", "TypeScript", "React", "Next.js", "Node.js", "Python", "MongoDB", "Docker"]
    return PortfolioDocument(
        name="Your Name",
        headline="Full-Stack Developer | AI Enthusiast",
        about_me=(
            "I'm a passionate software developer with a knack for creating dynamic and intuitive web "
            "applications. I thrive on solving complex problems and turning ideas into reality through code."
        ),
        projects=(
            Project(
                id=new_id(),
                title="E-commerce Platform",
                tech_stack="React, Node.js, MongoDB",
                description=(
                    "A full-stack e-commerce application with product listings, a shopping cart, and a "
                    "checkout process. Integrated with Stripe for payments."
                ),
                link="https://github.com",
            ),
            Project(
                id=new_id(),
                title="Task Management App",
                tech_stack="Next.js, Firebase, Tailwind CSS",
                description=(
                    "A responsive task management app that allows users to create, organize, and track "
                    "their daily tasks with a clean, drag-and-drop interface."
                ),
                link="https://github.com",
            ),
        ),
        skills=tuple(Skill(id=new_id(), name=s) for s in skills),
    )


def document_to_dict(doc: PortfolioDocument) -> dict[str, Any]:
    data = asdict(doc)
    # asdict keeps tuples; JSON wants lists.
    for key in LIST_FIELDS:
        data[key] = list(data[key])
    return data


def _text(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _optional_text(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} must be a string or null")
    return value


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise TypeError(f"{key} must be a list of objects")
    return value


def document_from_dict(data: dict[str, Any]) -> PortfolioDocument:
    """
    Inverse of document_to_dict. Raises KeyError/TypeError/ValueError on a payload
    that does not describe a full document.
    """
    if not isinstance(data, dict):
        raise TypeError("document must be an object")

    contact = data["contact"]
    theme = data["theme"]
    if not isinstance(contact, dict) or not isinstance(theme, dict):
        raise TypeError("contact and theme must be objects")

    doc = PortfolioDocument(
        name=_text(data, "name"),
        headline=_text(data, "headline"),
        about_me=_text(data, "about_me"),
        projects=tuple(
            Project(
                id=_text(p, "id"),
                title=_text(p, "title"),
                tech_stack=_text(p, "tech_stack"),
                description=_text(p, "description"),
                link=_optional_text(p, "link"),
                image_url=_optional_text(p, "image_url"),
            )
            for p in _items(data, "projects")
        ),
        skills=tuple(Skill(id=_text(s, "id"), name=_text(s, "name")) for s in _items(data, "skills")),
        experiences=tuple(
            Experience(
                id=_text(e, "id"),
                role=_text(e, "role"),
                company=_text(e, "company"),
                period=_text(e, "period"),
                description=_text(e, "description"),
            )
            for e in _items(data, "experiences")
        ),
        testimonials=tuple(
            Testimonial(
                id=_text(t, "id"),
                name=_text(t, "name"),
                role=_text(t, "role"),
                text=_text(t, "text"),
                avatar_url=_optional_text(t, "avatar_url"),
            )
            for t in _items(data, "testimonials")
        ),
        contact=Contact(
            email=_text(contact, "email"),
            github=_text(contact, "github"),
            linkedin=_text(contact, "linkedin"),
        ),
        theme=ThemeSettings(
            color_scheme=_text(theme, "color_scheme"),
            layout=_text(theme, "layout"),
        ),
    )
    for key in LIST_FIELDS:
        check_items(key, getattr(doc, key))
    return doc
