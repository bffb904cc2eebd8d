"""
Data sources — descriptor resolution for widgets and select parameters.

Modules:
  template        : ``{{key}}`` interpolation.
  http_client     : Async HTTP wrapper + response-path extraction.
  query_executor  : Query-simulation collaborator (OpenAI-compatible).
  resolver        : Dispatches a descriptor to static / query / http.
  normalize       : Record clean-up and option mapping.

Public API::

    from report_app.services.sources import DataSourceResolver, interpolate
"""

from report_app.services.sources.http_client import HttpSourceClient
from report_app.services.sources.normalize import normalize_records, records_to_options
from report_app.services.sources.query_executor import (
    LLMQuerySimulator,
    QueryExecutor,
    build_query_executor,
)
from report_app.services.sources.resolver import DataSourceResolver, unbound_placeholders
from report_app.services.sources.template import find_placeholders, interpolate

__all__ = [
    "DataSourceResolver",
    "HttpSourceClient",
    "LLMQuerySimulator",
    "QueryExecutor",
    "build_query_executor",
    "find_placeholders",
    "interpolate",
    "normalize_records",
    "records_to_options",
    "unbound_placeholders",
]
