"""CSV Rendering — serializes (number, value) pairs for export.

Invariants:
    - Header row is always "number,value"
    - Rows are written in the order given (the store hands them over ascending)
    - Lines end with "\\n"; values are bare digit strings, never quoted

Design Decisions:
    - Render to a string in core, write in the shell: keeps the IO (and its
      failure mapping) in ResultStore.export
"""

import csv
import io
from typing import Iterable

CSV_HEADER = ("number", "value")


def render_csv(rows: Iterable[tuple[int, str]]) -> str:
    """Render rows as UTF-8-ready CSV text with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(rows)
    return buf.getvalue()
