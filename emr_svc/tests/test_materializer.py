"""
Unit tests for the row materializer.

Tests cover:
- FieldValue kinds for every column type SQLite hands back
- Column order and duplicate column names
- Paging through the cursor, and that a materializer cannot be restarted
- Immutability of ResultRow
"""
import sqlite3
from datetime import date, datetime
from decimal import Decimal

import pytest

# Importing base registers the DATE / DATETIME / BOOLEAN converters
import emr_svc.repositories.base  # noqa: F401
from emr_svc.services.search.materializer import (
    ColumnLayout,
    FieldValue,
    ResultRow,
    RowMaterializer,
    ValueKind,
)


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:", detect_types=sqlite3.PARSE_DECLTYPES)
    connection.execute(
        "CREATE TABLE sample (id INTEGER, name TEXT, weight REAL, seen DATE, "
        "started DATETIME, active BOOLEAN, note TEXT)"
    )
    connection.executemany(
        "INSERT INTO sample VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "Amina", 61.5, "2024-01-15", "2024-01-15 08:00:00", 1, None),
            (2, "Baraka", 72.0, "2024-01-16", "2024-01-16 09:30:00", 0, ""),
            (3, "Chebet", None, "2024-01-17", "2024-01-17 10:00:00", 1, "follow up"),
        ],
    )
    yield connection
    connection.close()


class FakeCursor:
    """Cursor stub recording how the materializer reads from it."""

    def __init__(self, columns, rows):
        self._description = tuple((name, None, None, None, None, None, None) for name in columns)
        self._rows = list(rows)
        self.description_reads = 0
        self.fetch_sizes = []

    @property
    def description(self):
        self.description_reads += 1
        return self._description

    def fetchmany(self, size):
        self.fetch_sizes.append(size)
        batch, self._rows = self._rows[:size], self._rows[size:]
        return batch


# =============================================================================
# VALUE KINDS
# =============================================================================

class TestFieldValue:
    """Tests for FieldValue.of() and to_json()."""

    @pytest.mark.parametrize("value, kind", [
        (None, ValueKind.NULL),
        ("text", ValueKind.STRING),
        ("", ValueKind.STRING),
        (42, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        (Decimal("2.50"), ValueKind.NUMBER),
        (True, ValueKind.BOOLEAN),
        (False, ValueKind.BOOLEAN),
        (date(2024, 1, 15), ValueKind.DATE),
        (datetime(2024, 1, 15, 8, 0), ValueKind.DATE),
    ])
    def test_kind_follows_value_type(self, value, kind):
        assert FieldValue.of(value).kind is kind

    def test_bytes_are_decoded_as_text(self):
        field = FieldValue.of("héllo".encode("utf-8"))

        assert field == FieldValue(ValueKind.STRING, "héllo")

    def test_unknown_types_become_text(self):
        assert FieldValue.of(object).kind is ValueKind.STRING

    def test_null_is_distinct_from_empty_string(self):
        assert FieldValue.of(None) != FieldValue.of("")

    def test_json_values(self):
        assert FieldValue.of(date(2024, 1, 15)).to_json() == "2024-01-15"
        assert FieldValue.of(datetime(2024, 1, 15, 8, 0)).to_json() == "2024-01-15T08:00:00"
        assert FieldValue.of(Decimal("2.50")).to_json() == 2.5
        assert FieldValue.of(None).to_json() is None
        assert FieldValue.of(True).to_json() is True


# =============================================================================
# MATERIALIZING QUERY RESULTS
# =============================================================================

class TestRowMaterializer:
    """Tests against a real SQLite cursor."""

    def test_rows_keep_result_set_order(self, conn):
        cursor = conn.execute("SELECT id, name FROM sample ORDER BY id DESC")
        rows = list(RowMaterializer(cursor, page_size=2))

        assert [row["id"] for row in rows] == [3, 2, 1]

    def test_columns_keep_select_order(self, conn):
        cursor = conn.execute("SELECT note, id, name FROM sample WHERE id = 1")
        row = next(RowMaterializer(cursor))

        assert list(row) == ["note", "id", "name"]

    def test_declared_types_become_tagged_values(self, conn):
        cursor = conn.execute("SELECT * FROM sample WHERE id = 1")
        row = next(RowMaterializer(cursor))

        assert row.field("id").kind is ValueKind.NUMBER
        assert row.field("name") == FieldValue(ValueKind.STRING, "Amina")
        assert row.field("weight").kind is ValueKind.NUMBER
        assert row.field("seen") == FieldValue(ValueKind.DATE, date(2024, 1, 15))
        assert row.field("started") == FieldValue(ValueKind.DATE, datetime(2024, 1, 15, 8, 0))
        assert row.field("active") == FieldValue(ValueKind.BOOLEAN, True)
        assert row.field("note") == FieldValue(ValueKind.NULL, None)

    def test_null_and_empty_string_are_preserved(self, conn):
        cursor = conn.execute("SELECT id, note FROM sample WHERE id IN (1, 2) ORDER BY id")
        first, second = RowMaterializer(cursor)

        assert first["note"] is None
        assert second["note"] == ""
        assert second.field("note").kind is ValueKind.STRING

    def test_duplicate_column_name_keeps_first_position_and_last_value(self, conn):
        cursor = conn.execute("SELECT 1 AS a, 2 AS b, 3 AS a")
        row = next(RowMaterializer(cursor))

        assert list(row) == ["a", "b"]
        assert row["a"] == 3
        assert row.to_dict() == {"a": 3, "b": 2}

    def test_empty_result(self, conn):
        cursor = conn.execute("SELECT id, name FROM sample WHERE id > 100")
        materializer = RowMaterializer(cursor)

        assert list(materializer) == []
        assert materializer.layout.names == ("id", "name")

    def test_to_dict_is_json_ready(self, conn):
        cursor = conn.execute("SELECT id, seen, active FROM sample WHERE id = 2")
        row = next(RowMaterializer(cursor))

        assert row.to_dict() == {"id": 2, "seen": "2024-01-16", "active": False}


class TestPaging:
    """Tests for cursor access patterns."""

    def test_description_is_read_once_per_query(self):
        cursor = FakeCursor(["a", "b"], [(i, i * 2) for i in range(5)])
        rows = list(RowMaterializer(cursor, page_size=2))

        assert len(rows) == 5
        assert cursor.description_reads == 1

    def test_rows_are_fetched_in_pages(self):
        cursor = FakeCursor(["a"], [(i,) for i in range(5)])
        list(RowMaterializer(cursor, page_size=2))

        # 2 + 2 + 1, then the empty page that ends the loop
        assert cursor.fetch_sizes == [2, 2, 2, 2]

    def test_materializer_cannot_be_restarted(self):
        cursor = FakeCursor(["a"], [(1,), (2,)])
        materializer = RowMaterializer(cursor)

        assert [row["a"] for row in materializer] == [1, 2]
        assert list(materializer) == []

    def test_rows_share_one_layout(self):
        cursor = FakeCursor(["a"], [(1,), (2,)])
        materializer = RowMaterializer(cursor)
        first, second = materializer

        assert first._layout is second._layout is materializer.layout

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_page_size_must_be_positive(self, page_size):
        with pytest.raises(ValueError):
            RowMaterializer(FakeCursor(["a"], []), page_size=page_size)

    def test_width_mismatch_is_rejected(self):
        materializer = RowMaterializer(FakeCursor(["a", "b"], []))

        with pytest.raises(ValueError):
            materializer.materialize((1,))


class TestResultRow:
    """Tests for the read-only row mapping."""

    def test_row_is_read_only(self):
        row = ResultRow(ColumnLayout(["a"]), (1,))

        with pytest.raises(TypeError):
            row["a"] = 2

    def test_unknown_column_raises_key_error(self):
        row = ResultRow(ColumnLayout(["a"]), (1,))

        with pytest.raises(KeyError):
            row["b"]
        assert row.get("b") is None

    def test_fields_pairs_names_with_values(self):
        row = ResultRow(ColumnLayout(["a", "b"]), (None, "x"))

        assert list(row.fields()) == [
            ("a", FieldValue(ValueKind.NULL, None)),
            ("b", FieldValue(ValueKind.STRING, "x")),
        ]
        assert len(row) == 2

    def test_layout_from_missing_description_is_empty(self):
        layout = ColumnLayout.from_description(None)

        assert len(layout) == 0
        assert layout.width == 0
