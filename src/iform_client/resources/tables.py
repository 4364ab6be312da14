# Reshaping of API JSON payloads into DataFrames, and back
import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd


def apply_dtypes(df: pd.DataFrame, dtypes: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """Optional column typing. Columns not present in df are ignored."""
    if not dtypes:
        return df
    present = {col: dtype for col, dtype in dtypes.items() if col in df.columns}
    return df.astype(present)


def to_table(items: Iterable[Mapping[str, Any]],
             columns: Sequence[str],
             dtypes: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    Keep only `columns` (in that order) from a list of JSON objects.
    Keys missing from an object and JSON nulls become missing values.
    """
    rows = [{col: item.get(col) for col in columns} for item in items]
    df = pd.DataFrame(rows, columns=list(columns))
    if df.empty and "id" in df.columns:
        df["id"] = df["id"].astype("int64")
    return apply_dtypes(df, dtypes)


def records_to_table(items: Iterable[Mapping[str, Any]],
                     dtypes: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    All keys of a list of records, in first-seen order, with ``id`` first.
    """
    items = list(items)
    columns: List[str] = []
    for item in items:
        for key in item.keys():
            if key not in columns:
                columns.append(key)
    if "id" in columns:
        columns.remove("id")
    columns.insert(0, "id")
    return to_table(items, columns, dtypes)


def single_row(item: Dict[str, Any]) -> pd.DataFrame:
    """One JSON object as a one-row frame."""
    return pd.DataFrame([item], columns=list(item.keys()))


def ids_from(payload: Any) -> List[int]:
    """
    Flatten the id payloads returned by bulk create/update/delete calls:
    [{"id": 1}, {"id": 2}], {"id": 1} or [1, 2].
    """
    if payload is None:
        return []
    if isinstance(payload, Mapping):
        return [payload["id"]] if "id" in payload else []
    ids: List[int] = []
    for entry in payload:
        if isinstance(entry, Mapping):
            if "id" in entry:
                ids.append(entry["id"])
        else:
            ids.append(entry)
    return ids


def frame_to_json_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Rows of a frame as JSON-ready dicts: missing values become None and
    datetime columns ISO 8601 strings.
    """
    return json.loads(df.to_json(orient="records", date_format="iso"))
