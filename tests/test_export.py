import io

import pandas as pd

from report_app.services.data.export import (
    records_to_csv,
    records_to_excel_bytes,
    records_to_frame,
)


def test_frame_uses_union_of_columns_in_first_seen_order():
    df = records_to_frame([{"name": "a", "value": 1}, {"name": "b", "extra": "x"}, 5])
    assert list(df.columns) == ["name", "value", "extra"]
    assert len(df) == 3


def test_csv():
    csv = records_to_csv([{"name": "Jan", "value": 10}, {"name": "Feb", "value": 12}])
    assert csv.splitlines() == ["name,value", "Jan,10", "Feb,12"]


def test_empty_exports():
    assert records_to_csv([]) == ""
    assert records_to_excel_bytes([]) == b""


def test_excel_round_trip():
    content = records_to_excel_bytes(
        [{"name": "Jan", "value": 10}],
        sheet_name="Revenue / month: [2026]",
    )
    assert content[:2] == b"PK"

    df = pd.read_excel(io.BytesIO(content), engine="openpyxl")
    assert list(df.columns) == ["name", "value"]
    assert df.iloc[0]["name"] == "Jan"
