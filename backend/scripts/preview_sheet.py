"""
Dry-run an attendance workbook: parse and classify rows without touching the DB.

Usage (from backend/):
    python scripts/preview_sheet.py path/to/attendance.xlsx 2024 3
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leave_analyzer.services.excel_parser import parse_attendance_sheet  # noqa: E402
from leave_analyzer.services.record_builder import prepare_batch  # noqa: E402


def main(argv: list[str]) -> int:
    if len(argv) != 4:
        print(__doc__)
        return 2
    path, year, month = argv[1], int(argv[2]), int(argv[3])

    with open(path, "rb") as fh:
        rows, file_errors = parse_attendance_sheet(fh)
    if file_errors:
        for msg in file_errors:
            print("FILE ERROR:", msg)
        return 1

    batch = prepare_batch(rows, year, month)
    print(f"Partition {batch.month_label}: seen={batch.rows_seen} "
          f"accepted={len(batch.rows)} duplicates_replaced={batch.duplicates_replaced}")
    for row in batch.rows:
        print(f"  {row.employee_name:<25} {row.day}  {row.status.value:<8} "
              f"worked={row.worked_hours:>5}  expected={row.expected_hours}")
    for msg in batch.errors:
        print("SKIPPED:", msg)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
