"""
Error taxonomy for the refresh pipeline.

  ReportError            base class
  SourceError            a data source descriptor could not be resolved
  ConfigError            the descriptor itself is malformed (fails fast)
  QueryExecutionError    the query-simulation collaborator failed
  ChatModelError         the chat-model provider failed or answered unusably
  EntityNotFoundError    unknown widget / parameter id
"""

from __future__ import annotations

from typing import Optional


class ReportError(Exception):
    """Base class for every error raised by ``report_app``."""


class SourceError(ReportError):
    """
    Any failure resolving a DataSourceDescriptor.

    Recovered locally by the orchestrator: logged, previous cached
    value retained, loading flag cleared.
    """

    def __init__(
        self,
        message: str,
        *,
        mode: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.mode = mode
        self.status = status


class ConfigError(SourceError):
    """Malformed descriptor (e.g. ``http`` mode with an empty URL)."""


class QueryExecutionError(ReportError):
    """Raised by a query executor when the simulated query fails."""


class ChatModelError(ReportError):
    """An OpenAI-compatible chat call failed, or its answer could not be used."""


class EntityNotFoundError(ReportError, KeyError):
    """Raised when a widget or parameter id is not on the dashboard."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        return f"{self.kind} '{self.entity_id}' not found"
