"""Tests for the table model and the comma-split CSV parser."""
import polars as pl

from agents.table import Table, decode_csv_bytes, parse_csv_text


class TestParseCsvText:
    """Tests for parse_csv_text."""

    def test_header_and_rows(self):
        """Header row gives columns, each later line one record."""
        table = parse_csv_text("email,total_spent\na@x.com,10\nb@x.com,20\n")
        assert table.columns == ("email", "total_spent")
        assert len(table) == 2
        assert table.record(1) == {"email": "b@x.com", "total_spent": "20"}

    def test_quotes_and_whitespace_stripped(self):
        table = parse_csv_text('"name" , "amount"\n "Ana" ,"12.5"\n')
        assert table.columns == ("name", "amount")
        assert table.record(0) == {"name": "Ana", "amount": "12.5"}

    def test_blank_lines_and_crlf(self):
        table = parse_csv_text("a,b\r\n\r\n1,2\r\n   \n3,4\r\n")
        assert len(table) == 2
        assert table.column_values("b") == ["2", "4"]

    def test_missing_trailing_cells_are_empty(self):
        table = parse_csv_text("a,b,c\n1\n")
        assert table.record(0) == {"a": "1", "b": "", "c": ""}

    def test_header_only_is_empty(self):
        """Fewer than two non-blank lines give an empty table."""
        assert parse_csv_text("a,b,c\n").is_empty
        assert parse_csv_text("").is_empty

    def test_repeated_header_keeps_last_value(self):
        table = parse_csv_text("a,a,b\n1,2,3\n")
        assert table.columns == ("a", "b")
        assert table.record(0) == {"a": "2", "b": "3"}

    def test_decode_drops_bom_and_replaces_invalid_bytes(self):
        text = decode_csv_bytes(b"\xef\xbb\xbfa,b\n1,\xff\n")
        table = parse_csv_text(text)
        assert table.columns == ("a", "b")
        assert table.record(0)["b"] == "�"


class TestTable:
    """Tests for Table construction and access."""

    def test_from_records_uses_first_record_schema(self):
        table = Table.from_records([
            {"id": "1", "amount": "5"},
            {"id": "2", "extra": "x"},
        ])
        assert table.columns == ("id", "amount")
        assert table.record(1) == {"id": "2", "amount": ""}

    def test_from_records_empty(self):
        assert Table.from_records([]).is_empty
        assert Table.from_records(None).is_empty

    def test_non_string_values_become_text(self):
        table = Table.from_records([{"n": 3, "x": None}])
        assert table.record(0) == {"n": "3", "x": ""}

    def test_to_frame_uses_positional_names(self):
        table = Table.from_records([{"total value": "1", "": "2"}])
        frame = table.to_frame()
        assert frame.columns == ["c0", "c1"]
        assert frame.schema["c0"] == pl.Utf8
        assert table.frame_column("") == "c1"

    def test_head_and_iteration(self):
        table = Table.from_records([{"a": str(i)} for i in range(5)])
        assert len(table.head(2)) == 2
        assert [r["a"] for r in table] == ["0", "1", "2", "3", "4"]
