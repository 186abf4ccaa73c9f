from __future__ import annotations


class PortfolioValidationError(ValueError):
    """User input that cannot be written to the document. Carries a field-level message."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DuplicateSkillError(PortfolioValidationError):
    def __init__(self, name: str) -> None:
        super().__init__("skills", "Skill already exists.")
        self.name = name


class StoreError(Exception):
    """A write that breaks the document's shape (wrong type, duplicate ids)."""


class GenerationFailed(Exception):
    """The generative service was unreachable, timed out, or returned an unusable payload."""


class GenerationUnavailable(GenerationFailed):
    """No provider is configured (missing API key), so nothing was attempted."""


class PersistenceReadError(Exception):
    pass


class PortfolioNotFound(PersistenceReadError):
    pass


class PortfolioCorrupted(PersistenceReadError):
    pass
