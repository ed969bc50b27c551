"""Classify rows against a record export and write an Excel review sheet."""

import argparse

import pandas as pd

from linkrec import Classifier, has_valid_exact_rule
from linkrec.io import load_configuration, load_schema, read_records, read_rows
from linkrec.types import BUCKETS


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--rows", required=True, help="Incoming rows file")
    parser.add_argument("--records", required=True, help="Existing records file")
    parser.add_argument("--schema", required=True, help="Target schema JSON")
    parser.add_argument("--config", required=True, help="Matching configuration JSON")
    parser.add_argument("--output", default="review.xlsx", help="Output workbook")
    args = parser.parse_args()

    schema = load_schema(args.schema)
    rules = load_configuration(args.config)
    rows = read_rows(args.rows)
    records = read_records(args.records, schema)

    print(f"Rows: {len(rows)}")
    print(f"Records: {len(records)}")
    if not has_valid_exact_rule(rules, schema):
        print("Warning: no exact rule resolves to a schema field")

    result = Classifier().classify(rows, records, schema, rules)

    with pd.ExcelWriter(args.output) as writer:
        for bucket in BUCKETS:
            sheet = pd.DataFrame([
                {
                    "row": item.row_index,
                    **item.row,
                    "record_id": item.record.id if item.record else None,
                    "record_name": item.record.name if item.record else None,
                    "similarity": round(item.similarity, 4) if item.similarity is not None else None,
                }
                for item in result.bucket(bucket)
            ])
            sheet.to_excel(writer, sheet_name=bucket, index=False)
            print(f"  {bucket}: {len(sheet)}")

    print(f"Saved to: {args.output}")


if __name__ == "__main__":
    main()
