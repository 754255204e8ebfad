"""
Query registry - single source of truth for named SQL templates.

This module provides:
- YAML-based loading and validation of query templates
- QueryTemplate dataclass (immutable id + SQL text)
- Read-only resolution of a query id to its template

The set of query ids is fixed when the registry is built at startup; nothing
else in the service reads the template file.

Templates are read-only: each must open with SELECT or WITH, after any
leading comments. Query connections are never committed.

File format:
    queries:
      kenyaemr.search.visitsByLocation: |
        SELECT v.uuid FROM visits v ...

Usage:
    from emr_svc.core.query_registry import QueryRegistry

    registry = QueryRegistry.from_yaml(settings.queries_path)
    template = registry.resolve("kenyaemr.search.visitsByLocation")
"""
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Tuple, Union

import yaml

from emr_svc.core.exceptions import QueryNotFoundError

logger = logging.getLogger(__name__)

READ_ONLY_KEYWORDS = ("SELECT", "WITH")

_LEADING_KEYWORD = re.compile(r"\A(?:\s+|--[^\n]*(?:\n|\Z)|/\*.*?\*/|\()*([A-Za-z]+)", re.DOTALL)


# =============================================================================
# QUERY TEMPLATE DATACLASS
# =============================================================================

@dataclass(frozen=True)
class QueryTemplate:
    """
    Immutable named SQL template.

    Attributes:
        id: Opaque query identifier (e.g. "kenyaemr.search.visitsByLocation")
        sql: SQL text with zero or more `:name` placeholders
    """
    id: str
    sql: str


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def is_read_only(sql: str) -> bool:
    """True when the statement opens with one of READ_ONLY_KEYWORDS."""
    match = _LEADING_KEYWORD.match(sql)
    return match is not None and match.group(1).upper() in READ_ONLY_KEYWORDS


def _load_yaml_config(path: Path) -> Dict[str, Any]:
    """
    Load and parse a query template file.

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If YAML parsing fails
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("Query template file not found", extra={"path": str(path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse query template file", extra={"path": str(path), "error": str(e)})
        raise


def _validate_query_entry(query_id: Any, sql: Any) -> None:
    """
    Validate a single query entry.

    Raises:
        ValueError: If the id or SQL text is missing or not a string, or the
            SQL is not a SELECT statement
    """
    if not isinstance(query_id, str) or not query_id.strip():
        raise ValueError(f"Query id must be a non-empty string, got {query_id!r}")
    if not isinstance(sql, str) or not sql.strip():
        raise ValueError(f"Query '{query_id}' must map to non-empty SQL text")
    if not is_read_only(sql):
        raise ValueError(f"Query '{query_id}' must be a SELECT statement")


@lru_cache(maxsize=8)
def load_query_templates(path: Union[str, Path]) -> Tuple[QueryTemplate, ...]:
    """
    Load and cache the query templates defined in a YAML file.

    Cached per path so the file is read exactly once per process.
    """
    config = _load_yaml_config(Path(path))
    queries = config.get("queries", {})
    if not isinstance(queries, dict):
        raise ValueError("'queries' must be a mapping of query id to SQL text")

    templates = []
    for query_id, sql in queries.items():
        _validate_query_entry(query_id, sql)
        templates.append(QueryTemplate(id=query_id, sql=sql.strip()))

    logger.info("Query templates loaded", extra={"path": str(path), "count": len(templates)})
    return tuple(templates)


# =============================================================================
# REGISTRY
# =============================================================================

class QueryRegistry:
    """
    Resolves query ids to their templates.

    Resolution is a pure lookup: the same id always yields the same
    QueryTemplate object, and an unknown id raises QueryNotFoundError.
    """

    def __init__(self, templates: Union[Mapping[str, str], Tuple[QueryTemplate, ...]]):
        """
        Build a registry.

        Args:
            templates: Either QueryTemplate objects or a mapping of id to SQL text.

        Raises:
            ValueError: If an entry is invalid (see _validate_query_entry).
        """
        if isinstance(templates, Mapping):
            templates = tuple(QueryTemplate(id=k, sql=v) for k, v in templates.items())

        self._templates: Dict[str, QueryTemplate] = {}
        for template in templates:
            _validate_query_entry(template.id, template.sql)
            if template.id in self._templates:
                logger.warning("Duplicate query id, keeping the last definition", extra={"query_id": template.id})
            self._templates[template.id] = template

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "QueryRegistry":
        """Build a registry from a YAML template file."""
        return cls(load_query_templates(str(path)))

    def resolve(self, query_id: str) -> QueryTemplate:
        """
        Get the template registered under query_id.

        Raises:
            QueryNotFoundError: If no template is registered under the id
        """
        template = self._templates.get(query_id)
        if template is None:
            logger.warning("Unknown query id", extra={"query_id": query_id})
            raise QueryNotFoundError(query_id=query_id)
        return template

    def query_ids(self) -> Tuple[str, ...]:
        """All registered query ids, sorted."""
        return tuple(sorted(self._templates))

    def __contains__(self, query_id: object) -> bool:
        return query_id in self._templates

    def __iter__(self) -> Iterator[QueryTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)
