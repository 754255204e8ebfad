"""
Named-parameter binder for query templates.

Turns SQL written with `:name` placeholders into SQL with positional `?`
markers plus the matching tuple of values, ready for cursor.execute().
Values are never spliced into the SQL text; the only thing written into the
text is one `?` per bound value.

Rules:
- A placeholder with no entry in the parameter set binds NULL, so optional
  filters can be written as `(:status IS NULL OR status = :status)`.
- Parameters the template never mentions are ignored.
- A list/tuple value expands into `?, ?, ...` (one marker per element). It may
  only stand for a whole `IN (...)` list; anywhere else it is a BindingError.
  Any other value binds to exactly one marker.
- Quoted strings, quoted identifiers, comments, `::` casts and `:=` are not
  placeholders.

Usage:
    statement = bind(template, {"status": ["ACTIVE", "PENDING"]})
    cursor.execute(statement.sql, statement.parameters)
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from uuid import UUID

from emr_svc.core.datetime_utils import to_utc
from emr_svc.core.exceptions import BindingError, TemplateError
from emr_svc.core.metadata import LOCATION_PARAM, VISIT_LOCATION_PARAM
from emr_svc.core.query_registry import QueryTemplate

logger = logging.getLogger(__name__)

POSITIONAL_MARKER = "?"

Scalar = Union[None, str, bytes, int, float, bool, Decimal, date, datetime, time, UUID]
ParameterValue = Union[Scalar, Sequence[Scalar]]
ParameterSet = Mapping[str, ParameterValue]

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_OPENS_IN_LIST = re.compile(r"\bIN\s*\(\s*$", re.IGNORECASE)
_CLOSES_LIST = re.compile(r"^\s*\)")


# =============================================================================
# TEMPLATE PARSING
# =============================================================================

class TemplateSyntaxError(ValueError):
    """Raised by parse_template(); bind() reports it as a TemplateError."""

    def __init__(self, reason: str, position: int):
        self.reason = reason
        self.position = position
        super().__init__(f"{reason} at position {position}")


@dataclass(frozen=True)
class ParsedTemplate:
    """
    A template split around its placeholders.

    Attributes:
        segments: SQL text between placeholders; always len(names) + 1 items
        names: Placeholder names in order of appearance (repeats included)
        in_list: Per placeholder, whether it is the whole of an `IN (...)` list
    """
    segments: Tuple[str, ...]
    names: Tuple[str, ...]
    in_list: Tuple[bool, ...] = ()

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        """Distinct placeholder names, in order of first appearance."""
        return tuple(dict.fromkeys(self.names))


def _skip_quoted(sql: str, start: int) -> int:
    """Return the index just past the quoted run opening at `start`."""
    quote = sql[start]
    i = start + 1
    n = len(sql)
    while i < n:
        if sql[i] == quote:
            # A doubled quote is an escaped quote character
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    raise TemplateSyntaxError(f"unterminated {quote} quote", start)


@lru_cache(maxsize=256)
def parse_template(sql: str) -> ParsedTemplate:
    """
    Split SQL text around its `:name` placeholders.

    Raises:
        TemplateSyntaxError: For empty text, unterminated quotes or comments,
            a `:` not followed by a name, or positional `?` markers.
    """
    if not sql or not sql.strip():
        raise TemplateSyntaxError("template is empty", 0)

    segments: List[str] = []
    names: List[str] = []
    segment_start = 0
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            i = _skip_quoted(sql, i)
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            if end == -1:
                raise TemplateSyntaxError("unterminated block comment", i)
            i = end + 2
        elif ch == ":":
            following = sql[i + 1:i + 2]
            if following in (":", "="):
                i += 2
                continue
            match = _NAME.match(sql, i + 1)
            if match is None:
                raise TemplateSyntaxError("expected a parameter name after ':'", i)
            segments.append(sql[segment_start:i])
            names.append(match.group())
            i = segment_start = match.end()
        elif ch == POSITIONAL_MARKER:
            raise TemplateSyntaxError("positional '?' markers are not supported, use :name", i)
        else:
            i += 1

    segments.append(sql[segment_start:])
    in_list = tuple(
        bool(_OPENS_IN_LIST.search(before)) and bool(_CLOSES_LIST.match(after))
        for before, after in zip(segments, segments[1:])
    )
    return ParsedTemplate(segments=tuple(segments), names=tuple(names), in_list=in_list)


# =============================================================================
# BINDING
# =============================================================================

@dataclass(frozen=True)
class BoundStatement:
    """
    Executable statement: positional SQL plus its values.

    placeholder_count always equals len(parameters).
    """
    sql: str
    parameters: Tuple[Any, ...]
    placeholder_count: int


def _coerce(name: str, value: Any) -> Any:
    """Convert one value to a type the sqlite3 driver binds natively."""
    if isinstance(value, bool):
        return int(value)
    if value is None or isinstance(value, (str, bytes, int, float)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = to_utc(value).replace(tzinfo=None)
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise BindingError(parameter=name, reason=f"unsupported value type {type(value).__name__}")


def bind(template: QueryTemplate, params: Optional[ParameterSet] = None) -> BoundStatement:
    """
    Bind a parameter set to a template.

    Args:
        template: The resolved query template.
        params: Placeholder name to scalar value or list of scalar values.

    Returns:
        BoundStatement: Positional SQL with one value per `?` marker.

    Raises:
        TemplateError: If the template text is malformed.
        BindingError: If a value has an unsupported type, or a list is given
            for a placeholder that is not the whole of an `IN (...)` list.
    """
    params = params or {}
    try:
        parsed = parse_template(template.sql)
    except TemplateSyntaxError as exc:
        logger.warning(
            "Malformed query template",
            extra={"query_id": template.id, "reason": exc.reason, "position": exc.position}
        )
        raise TemplateError(reason=exc.reason, query_id=template.id, position=exc.position) from exc

    sql_parts = [parsed.segments[0]]
    values: List[Any] = []
    placeholder_count = 0

    for name, segment, in_list in zip(parsed.names, parsed.segments[1:], parsed.in_list):
        value = params.get(name)
        if isinstance(value, (set, frozenset)):
            raise BindingError(parameter=name, reason="multi-valued parameters must be a list or tuple")
        if isinstance(value, (list, tuple)):
            if not in_list:
                raise BindingError(parameter=name, reason="a list can only be bound to a whole IN (...) list")
            items = [_coerce(name, item) for item in value]
            sql_parts.append(", ".join(POSITIONAL_MARKER for _ in items))
        else:
            items = [_coerce(name, value)]
            sql_parts.append(POSITIONAL_MARKER)
        sql_parts.append(segment)
        values.extend(items)
        placeholder_count += len(items)

    return BoundStatement(
        sql="".join(sql_parts),
        parameters=tuple(values),
        placeholder_count=placeholder_count,
    )


def with_visit_location(params: Optional[ParameterSet]) -> Dict[str, ParameterValue]:
    """
    Copy a parameter set, adding visit_location_uuid when location_uuid is given.

    Templates that filter visits by the facility use visit_location_uuid;
    callers only ever send location_uuid. The original key is kept and an
    existing visit_location_uuid is replaced.
    """
    updated: Dict[str, ParameterValue] = dict(params or {})
    if LOCATION_PARAM in updated:
        value = updated[LOCATION_PARAM]
        updated[VISIT_LOCATION_PARAM] = list(value) if isinstance(value, list) else value
    return updated
