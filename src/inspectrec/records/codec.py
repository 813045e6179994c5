"""Line codec for the inspection data file.

One record per line, four comma-separated fields, no header and no quoting:

    I001,ABC1234,John Doe,01/08/2025
"""

from __future__ import annotations

from typing import Optional

from inspectrec.records.models import InspectionRecord

DELIMITER = ","
FIELD_COUNT = 4


def parse_line(line: str) -> Optional[InspectionRecord]:
    """Parse one line, or return ``None`` when it should be skipped.

    Empty fields are collapsed and anything past the fourth field is
    ignored, so only a line with fewer than four values is skipped.
    """
    text = (line or "").strip()
    if not text:
        return None
    tokens = [t for t in (t.strip() for t in text.split(DELIMITER)) if t]
    if len(tokens) < FIELD_COUNT:
        return None
    return InspectionRecord(*tokens[:FIELD_COUNT])


def format_line(record: InspectionRecord) -> str:
    return DELIMITER.join(record.fields())
