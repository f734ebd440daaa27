"""Map domain coordinates (maturity, visibility) onto pixel space."""
from __future__ import annotations

import math

LEFT_MARGIN = 30.0
RIGHT_MARGIN = 10.0
# Top margin leaves room for the title, bottom margin for the axis labels.
TOP_MARGIN = 40.0
BOTTOM_MARGIN = 30.0


def to_x(maturity: float, width: float) -> float:
    usable_width = width - LEFT_MARGIN - RIGHT_MARGIN
    return LEFT_MARGIN + maturity * usable_width


def to_y(visibility: float, height: float) -> float:
    usable_height = height - TOP_MARGIN - BOTTOM_MARGIN
    # Visibility 1 sits at the top.
    return TOP_MARGIN + (1 - visibility) * usable_height


def clamp_unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0 if math.isnan(value) or value < 0 else 1.0
    return min(1.0, max(0.0, value))
