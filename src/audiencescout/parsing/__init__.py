"""Tolerant parsing of generator output."""

from .recovery import Empty, ParseResult, RecoveryParser, Structured, Unstructured

__all__ = ["Empty", "ParseResult", "RecoveryParser", "Structured", "Unstructured"]
