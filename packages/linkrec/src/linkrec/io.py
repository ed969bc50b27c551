"""File input and output for the CLI and HTTP service."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import pandas as pd

from linkrec.materialize import ChangeSet
from linkrec.types import (
    BUCKETS,
    ClassificationResult,
    DictRecord,
    MatchConfiguration,
    TargetSchema,
)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _read_table(path: Path) -> list[dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix == ".jsonl":
        with path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
    if suffix == ".json":
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON list of objects")
        return data
    if suffix == ".xls":
        raise ValueError(f"{path}: legacy .xls workbooks are not supported, save as .xlsx")
    if suffix == ".xlsx":
        df = pd.read_excel(path, dtype=str).fillna("")
        return df.to_dict(orient="records")
    with path.open(newline="", encoding="utf-8-sig") as f:
        return list(csv.DictReader(f))


def read_rows(path: str | Path) -> list[dict[str, str]]:
    """Read incoming rows from CSV, JSON, JSONL or Excel.

    Values are stringified and rows without any non-blank value are
    skipped.
    """
    rows: list[dict[str, str]] = []
    for raw in _read_table(Path(path)):
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: every row must be an object")
        row = {str(k).strip(): _stringify(v).strip() for k, v in raw.items() if k is not None}
        if any(row.values()):
            rows.append(row)
    return rows


def read_records(
    path: str | Path,
    schema: TargetSchema,
    id_column: str = "id",
) -> list[DictRecord]:
    """Read target records; columns may name fields by id or by name."""
    records: list[DictRecord] = []
    for i, raw in enumerate(_read_table(Path(path))):
        record_id = _stringify(raw.get(id_column)).strip() or f"row{i}"
        values: dict[str, Any] = {}
        for key, value in raw.items():
            if key == id_column:
                continue
            schema_field = schema.field_by_id_if_exists(key) or schema.field_by_name_if_exists(key)
            if schema_field is not None:
                values[schema_field.id] = value
        records.append(DictRecord(id=record_id, values=values))
    return records


def load_schema(path: str | Path) -> TargetSchema:
    with Path(path).open(encoding="utf-8") as f:
        return TargetSchema.from_dict(json.load(f))


def load_configuration(path: str | Path) -> MatchConfiguration:
    with Path(path).open(encoding="utf-8") as f:
        return MatchConfiguration.from_dict(json.load(f))


def _result_rows(result: ClassificationResult) -> list[dict[str, Any]]:
    out = []
    for bucket in BUCKETS:
        for item in result.bucket(bucket):
            out.append({
                "row_index": item.row_index,
                "bucket": bucket,
                "record_id": item.record.id if item.record else None,
                "record_name": item.record.name if item.record else None,
                "match_type": item.match_type,
                "similarity": item.similarity,
                "row": item.row,
                "details": {k: asdict(d) for k, d in item.details.items()},
            })
    out.sort(key=lambda r: r["row_index"])
    return out


def write_results(result: ClassificationResult, path: str | Path) -> None:
    """Write one line per row to CSV or JSONL."""
    path = Path(path)
    rows = _result_rows(result)

    if path.suffix.lower() == ".jsonl":
        with path.open("w", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
        return

    fieldnames = ["row_index", "bucket", "record_id", "record_name", "match_type", "similarity", "row"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow({
                **{k: row[k] for k in fieldnames if k != "row"},
                "similarity": "" if row["similarity"] is None else round(row["similarity"], 4),
                "row": json.dumps(row["row"], ensure_ascii=False),
            })


def write_changes(changes: ChangeSet, path: str | Path) -> None:
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(asdict(changes), f, indent=2, ensure_ascii=False)
