"""Errors surfaced by the search pipeline."""

from __future__ import annotations


class SearchValidationError(ValueError):
    """The request itself is unusable (empty query, bad filters, ...).

    The only error the search entry points let escape; every collaborator
    failure is absorbed and degrades the response instead.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]
