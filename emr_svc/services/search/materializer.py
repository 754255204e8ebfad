"""
Row materializer - turns cursor rows into schema-less, ordered records.

Column metadata is read from cursor.description once per query and shared by
every row. Each column value is wrapped in a FieldValue tagged with its
ValueKind, so callers never have to inspect Python types to tell a NULL from
an empty string or a date from its text.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class ValueKind(str, Enum):
    """Closed set of value kinds a result column can hold."""

    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


@dataclass(frozen=True)
class FieldValue:
    """A column value tagged with its kind."""

    kind: ValueKind
    value: Any

    @classmethod
    def of(cls, value: Any) -> "FieldValue":
        if value is None:
            return cls(ValueKind.NULL, None)
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, (date, datetime)):
            return cls(ValueKind.DATE, value)
        if isinstance(value, bytes):
            return cls(ValueKind.STRING, value.decode("utf-8", errors="replace"))
        return cls(ValueKind.STRING, str(value))

    def to_json(self) -> Any:
        """The value as a JSON-compatible Python object."""
        if self.kind is ValueKind.DATE:
            return self.value.isoformat()
        if isinstance(self.value, Decimal):
            return float(self.value)
        return self.value


class ColumnLayout:
    """
    Column names and positions of one result set.

    A name that appears more than once keeps the position of its first
    appearance and takes the value of its last column.
    """

    __slots__ = ("names", "positions", "width", "_slots")

    def __init__(self, names: Sequence[str]):
        last_position: Dict[str, int] = {}
        for position, name in enumerate(names):
            last_position[name] = position

        self.names: Tuple[str, ...] = tuple(last_position)
        self.positions: Tuple[int, ...] = tuple(last_position.values())
        self.width = len(names)
        self._slots = MappingProxyType({name: slot for slot, name in enumerate(self.names)})

    @classmethod
    def from_description(cls, description: Optional[Sequence[Sequence[Any]]]) -> "ColumnLayout":
        return cls([column[0] for column in description or ()])

    def slot(self, name: str) -> int:
        return self._slots[name]

    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        return f"ColumnLayout({list(self.names)!r})"


class ResultRow(Mapping[str, Any]):
    """
    One immutable result row: column name to value, in column order.

    row["name"] gives the plain value (None for NULL); row.field("name")
    gives the tagged FieldValue.
    """

    __slots__ = ("_layout", "_fields")

    def __init__(self, layout: ColumnLayout, values: Sequence[Any]):
        self._layout = layout
        self._fields: Tuple[FieldValue, ...] = tuple(FieldValue.of(values[p]) for p in layout.positions)

    def __getitem__(self, name: str) -> Any:
        return self._fields[self._layout.slot(name)].value

    def __iter__(self) -> Iterator[str]:
        return iter(self._layout.names)

    def __len__(self) -> int:
        return len(self._fields)

    def field(self, name: str) -> FieldValue:
        return self._fields[self._layout.slot(name)]

    def fields(self) -> Iterator[Tuple[str, FieldValue]]:
        return zip(self._layout.names, self._fields)

    def to_dict(self) -> Dict[str, Any]:
        """Column name to JSON-compatible value, in column order."""
        return {name: value.to_json() for name, value in self.fields()}

    def __repr__(self) -> str:
        return f"ResultRow({dict(self)!r})"


class RowMaterializer:
    """
    Single forward pass over a cursor, yielding ResultRow objects.

    Rows are pulled with fetchmany(page_size). Once exhausted the
    materializer stays exhausted; it cannot be restarted.

    Usage:
        rows = list(RowMaterializer(cursor))
    """

    def __init__(self, cursor: Any, page_size: int = 1000):
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self._cursor = cursor
        self._page_size = page_size
        self.layout = ColumnLayout.from_description(cursor.description)
        self._rows = self._fetch()

    def materialize(self, values: Sequence[Any]) -> ResultRow:
        """Materialize one raw row using this query's column layout."""
        if len(values) != self.layout.width:
            raise ValueError(f"Expected {self.layout.width} column values, got {len(values)}")
        return ResultRow(self.layout, values)

    def _fetch(self) -> Iterator[ResultRow]:
        while True:
            batch = self._cursor.fetchmany(self._page_size)
            if not batch:
                return
            for values in batch:
                yield self.materialize(values)

    def __iter__(self) -> "RowMaterializer":
        return self

    def __next__(self) -> ResultRow:
        return next(self._rows)
