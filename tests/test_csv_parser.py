import pytest

from trade_import.csv_parser import (
    is_empty_line, parse_csv_file, parse_csv_text, resolve_header, split_line,
)
from trade_import.errors import CSVFormatError
from trade_import.field_map import LEGACY_LAYOUT, TWO_FILE_LAYOUT
from tests.csvdata import (
    EXAMPLE_ROW, LABELED_HEADER, export, header_for, legacy_line, line,
)


# ── Line splitting ────────────────────────────────────────────────────

def test_split_line_trims_cells():
    assert split_line(" a ; b ;c") == ["a", "b", "c"]


def test_split_line_keeps_quoted_delimiter():
    assert split_line('1;"Rice; 25kg";x') == ["1", "Rice; 25kg", "x"]


def test_split_line_empty_cells():
    assert split_line(";;") == ["", "", ""]


@pytest.mark.parametrize("text,empty", [
    ("", True),
    (";;;;", True),
    ('"";-;$ -;', True),
    ("1;;", False),
    (";Rice;", False),
])
def test_is_empty_line(text, empty):
    assert is_empty_line(text) is empty


# ── Whole files ───────────────────────────────────────────────────────

def test_parse_skips_bom_title_and_blank_lines():
    text = "\ufeff" + export(
        line(contract_no="CT-1", status="أبحر"),
        ";;;;;;",
        "",
        line(contract_no="CT-2", status="وصل"),
        title="Shipments",
    )
    rows = parse_csv_text(text, TWO_FILE_LAYOUT)
    assert [r.contract_no for r in rows] == ["CT-1", "CT-2"]
    assert rows[0].line_no == 3
    assert rows[1].line_no == 6


def test_parse_positional_two_file_layout():
    rows = parse_csv_text(export(line(supplier_name="Acme", pol="Mumbai", bl_no="BL-9")),
                          TWO_FILE_LAYOUT)
    assert rows[0].supplier_name == "Acme"
    assert rows[0].pol == "Mumbai"
    assert rows[0].bl_no == "BL-9"


def test_parse_positional_legacy_layout_has_no_supplier():
    text = export(legacy_line(contract_no="CT-7", pod="Aqaba"), layout=LEGACY_LAYOUT)
    row = parse_csv_text(text, LEGACY_LAYOUT)[0]
    assert row.contract_no == "CT-7"
    assert row.pod == "Aqaba"
    assert row.supplier_name == ""


def test_parse_joins_wrapped_header():
    """A header broken over two physical lines is re-joined before data starts."""
    header = header_for(TWO_FILE_LAYOUT)
    cut = header.index(";col10")
    wrapped = header[:cut] + "\n" + header[cut:]
    text = wrapped + "\n" + line(contract_no="CT-1", status="أبحر") + "\n"
    rows = parse_csv_text(text, TWO_FILE_LAYOUT)
    assert len(rows) == 1
    assert rows[0].contract_no == "CT-1"


def test_parse_maps_columns_by_header_label():
    """Label mapping wins over position: price sits before weight in this header."""
    rows = parse_csv_text(LABELED_HEADER + "\n" + EXAMPLE_ROW + "\n", TWO_FILE_LAYOUT)
    row = rows[0]
    assert row.supplier_name == "Acme Foods"
    assert row.price_per_ton == "12500"
    assert row.weight_ton == "620"
    assert row.subject == ""
    assert row.bl_no == "BL-777"
    assert row.notes == "none"


def test_resolve_header_needs_enough_labels():
    assert resolve_header(["رقم", "المورد", "foo"]) is None
    mapping = resolve_header(LABELED_HEADER.split(";"))
    assert mapping is not None
    assert mapping[7] == "price_per_ton"
    assert mapping[8] == "weight_ton"


def test_resolve_header_rejects_duplicate_labels():
    cells = LABELED_HEADER.split(";")
    cells[-1] = "POL"
    assert resolve_header(cells) is None


def test_parse_without_header_raises():
    with pytest.raises(CSVFormatError):
        parse_csv_text("Shipments\n1;2;3\n", TWO_FILE_LAYOUT)


def test_parse_with_short_header_raises():
    with pytest.raises(CSVFormatError):
        parse_csv_text("رقم;المورد;x\n1;2;3\n", TWO_FILE_LAYOUT)


def test_parse_csv_file_missing(tmp_path):
    with pytest.raises(CSVFormatError):
        parse_csv_file(tmp_path / "nope.csv", TWO_FILE_LAYOUT)


def test_parse_csv_file_not_utf8(tmp_path):
    path = tmp_path / "latin1.csv"
    path.write_bytes(b"\xff\xfe\x00bad")
    with pytest.raises(CSVFormatError):
        parse_csv_file(path, TWO_FILE_LAYOUT)


def test_parse_csv_file_strips_bom(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes(b"\xef\xbb\xbf" + export(line(contract_no="CT-1")).encode("utf-8"))
    rows = parse_csv_file(path, TWO_FILE_LAYOUT)
    assert rows[0].contract_no == "CT-1"
