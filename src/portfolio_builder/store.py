from __future__ import annotations

import dataclasses
import uuid
from typing import Any, Callable

from portfolio_builder.errors import DuplicateSkillError, PortfolioValidationError, StoreError
from portfolio_builder.models import (
    LIST_FIELDS,
    TEXT_FIELDS,
    Contact,
    PortfolioDocument,
    Skill,
    Testimonial,
    ThemeSettings,
    check_items,
    check_text_fields,
    default_avatar_url,
)

Listener = Callable[[PortfolioDocument], None]


def new_item_id() -> str:
    return uuid.uuid4().hex[:12]


class PortfolioStore:
    """
    Holds one session's portfolio document. Every write swaps in a new frozen snapshot,
    so readers holding an older snapshot never see a partial edit.
    """

    def __init__(
        self,
        document: PortfolioDocument | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._id_factory = id_factory or new_item_id
        self._listeners: list[Listener] = []
        self._doc = _check_document(document or PortfolioDocument())

    def get(self) -> PortfolioDocument:
        return self._doc

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_field(self, field: str, value: Any) -> None:
        value = _check_field(field, value)
        self._commit(dataclasses.replace(self._doc, **{field: value}))

    def replace_all(self, document: PortfolioDocument) -> None:
        if not isinstance(document, PortfolioDocument):
            raise StoreError("replace_all expects a PortfolioDocument")
        self._commit(_check_document(document))

    def add_item(self, field: str, **values: Any) -> Any:
        item_type = _list_type(field)
        try:
            item = item_type(id=self._id_factory(), **values)
        except TypeError as e:
            raise StoreError(f"invalid {field} item: {e}") from e
        self.set_field(field, getattr(self._doc, field) + (item,))
        return item

    def update_item(self, field: str, item_id: str, **changes: Any) -> bool:
        """Returns False (and changes nothing) when no item has that id."""
        _list_type(field)
        if "id" in changes:
            raise StoreError("item ids are immutable")
        items = getattr(self._doc, field)
        if not any(item.id == item_id for item in items):
            return False
        try:
            updated = tuple(dataclasses.replace(item, **changes) if item.id == item_id else item for item in items)
        except TypeError as e:
            raise StoreError(f"invalid {field} update: {e}") from e
        self.set_field(field, updated)
        return True

    def remove_item(self, field: str, item_id: str) -> bool:
        """Returns False (and changes nothing) when no item has that id."""
        _list_type(field)
        items = getattr(self._doc, field)
        remaining = tuple(item for item in items if item.id != item_id)
        if len(remaining) == len(items):
            return False
        self.set_field(field, remaining)
        return True

    def add_skill(self, name: str) -> Skill:
        trimmed = (name or "").strip()
        if not trimmed:
            raise PortfolioValidationError("skills", "Skill name is required.")
        if has_skill(self._doc, trimmed):
            raise DuplicateSkillError(trimmed)
        return self.add_item("skills", name=trimmed)

    def add_testimonial(self, name: str, role: str, text: str, avatar_url: str | None = None) -> Testimonial:
        return self.add_item(
            "testimonials",
            name=name,
            role=role,
            text=text,
            avatar_url=avatar_url or default_avatar_url(name),
        )

    def _commit(self, doc: PortfolioDocument) -> None:
        self._doc = doc
        for listener in list(self._listeners):
            listener(doc)


def has_skill(doc: PortfolioDocument, name: str) -> bool:
    wanted = name.strip().lower()
    return any(s.name.lower() == wanted for s in doc.skills)


def _list_type(field: str) -> type:
    try:
        return LIST_FIELDS[field]
    except KeyError:
        raise StoreError(f"{field!r} is not a list field") from None


def _check_field(field: str, value: Any) -> Any:
    if field in TEXT_FIELDS:
        if not isinstance(value, str):
            raise StoreError(f"{field} must be a string")
        return value
    if field in LIST_FIELDS:
        try:
            return check_items(field, value)
        except (TypeError, ValueError) as e:
            raise StoreError(str(e)) from e
    if field in ("contact", "theme"):
        expected = Contact if field == "contact" else ThemeSettings
        if not isinstance(value, expected):
            raise StoreError(f"{field} must be a {expected.__name__}")
        try:
            check_text_fields(value)
        except TypeError as e:
            raise StoreError(str(e)) from e
        return value
    raise StoreError(f"unknown field {field!r}")


def _check_document(doc: PortfolioDocument) -> PortfolioDocument:
    return dataclasses.replace(doc, **{f.name: _check_field(f.name, getattr(doc, f.name)) for f in dataclasses.fields(doc)})
