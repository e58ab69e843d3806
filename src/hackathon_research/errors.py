"""Exception taxonomy for the research pipeline.

All pipeline exceptions inherit from ``ResearchError`` so callers at the batch
or trigger boundary can catch the family with a single ``except`` clause.
"""

from __future__ import annotations


class ResearchError(Exception):
    """Base exception for research pipeline errors."""


class ProviderError(ResearchError):
    """A search or completion backend was unreachable, rate-limited, or rejected auth."""

    def __init__(self, message: str = "Provider call failed", provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider


class SchemaError(ResearchError):
    """The language model returned output that does not parse against the expected shape."""

    def __init__(self, message: str = "Response did not match schema", raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ValidationError(ResearchError):
    """A discovery candidate failed the structural or signal filters.

    Discovery treats this as a silent drop, not an operational failure.
    """


class NotFoundError(ResearchError):
    """The referenced project id does not exist in the store."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id


class ConflictError(ResearchError):
    """A write would give a project a devpost URL another project already owns."""

    def __init__(self, devpost_url: str, owner_id: str | None = None) -> None:
        super().__init__(f"Devpost URL '{devpost_url}' already belongs to another project")
        self.devpost_url = devpost_url
        self.owner_id = owner_id
