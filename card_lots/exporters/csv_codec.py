"""CSV serialization shared by all exporters."""

import csv
import io
from typing import Iterable, Optional, Sequence

from card_lots.errors import SerializationFailure


def serialize_rows(
    header: Sequence[str],
    rows: Iterable[Sequence],
    preamble: Optional[Sequence[str]] = None,
) -> bytes:
    """
    Render rows as UTF-8 CSV bytes.

    Fields holding a comma, a double quote or a line break are quoted with
    inner quotes doubled. Every row, the last included, ends with CRLF.

    Args:
        header: column names, written as the first row (after the preamble)
        rows: value sequences in header order
        preamble: optional row written before the header

    Raises:
        SerializationFailure: a row's length does not match the header,
            or a value is None
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)

    if preamble is not None:
        writer.writerow(preamble)
    writer.writerow(header)

    for line_no, row in enumerate(rows, start=1):
        if len(row) != len(header):
            raise SerializationFailure(
                None, f"row {line_no}",
                f"has {len(row)} values for {len(header)} columns",
            )
        for column, value in zip(header, row):
            if value is None:
                raise SerializationFailure(None, column, f"value is missing in row {line_no}")
        writer.writerow(row)

    return buffer.getvalue().encode("utf-8")
