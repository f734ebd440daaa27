"""Text measurement for label wrapping."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import ImageFont

GENERIC_FONT_FILES = {
    "sans-serif": ["DejaVuSans.ttf", "Arial.ttf", "LiberationSans-Regular.ttf", "Helvetica.ttc"],
    "monospace": ["DejaVuSansMono.ttf", "Consolas.ttf", "LiberationMono-Regular.ttf", "Courier New.ttf"],
    "cursive": ["DejaVuSans.ttf", "Comic Sans MS.ttf"],
    "serif": ["DejaVuSerif.ttf", "Times New Roman.ttf", "LiberationSerif-Regular.ttf"],
}


class TextMeasurer:
    """Caches Pillow fonts per (family, size) and measures string widths."""

    def __init__(self) -> None:
        self._font_cache: Dict[Tuple[str, int], Optional[ImageFont.ImageFont]] = {}

    def font(self, size: float, family: str) -> Optional[ImageFont.ImageFont]:
        key_size = max(1, int(round(size)))
        generic = _generic_family(family)
        cache_key = (generic, key_size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        font: Optional[ImageFont.ImageFont] = None
        for candidate in GENERIC_FONT_FILES[generic]:
            try:
                font = ImageFont.truetype(candidate, key_size)
                break
            except OSError:
                continue
        if font is None:
            try:
                font = ImageFont.load_default(size=key_size)
            except OSError:
                font = None

        self._font_cache[cache_key] = font
        return font

    def measure(self, text: str, size: float, family: str) -> float:
        font = self.font(size, family)
        if font is None:
            return heuristic_width(text, size)
        return float(font.getlength(text))


_TEXT_MEASURER = TextMeasurer()


def measure_text(text: str, size: float, family: str = "sans-serif") -> float:
    return _TEXT_MEASURER.measure(text, size, family)


def wrap_lines(text: str, width_limit: float, font_size: float, family: str) -> List[str]:
    words = re.split(r"(\s+)", text.strip())
    lines: List[str] = []
    current = ""
    for chunk in words:
        if not chunk:
            continue
        candidate = (current + chunk) if current else chunk
        if measure_text(candidate.strip(), font_size, family) <= width_limit:
            current = candidate
            continue
        if current:
            lines.append(current.strip())
        current = chunk.strip()
    if current:
        lines.append(current.strip())
    return lines or [""]


def heuristic_width(text: str, font_size: float) -> float:
    width = 0.0
    for ch in text:
        if ch.isspace():
            width += font_size * 0.33
        elif ch in "il":
            width += font_size * 0.3
        elif ch in "mwMW@#":
            width += font_size * 0.9
        else:
            width += font_size * 0.6
    return width


def parse_font_size(value: str, default: float = 12.0) -> float:
    match = re.match(r"^\s*(\d+(?:\.\d+)?)", value or "")
    if match:
        return float(match.group(1))
    return default


def _generic_family(family: str) -> str:
    families = [part.strip().strip("\"'").lower() for part in family.split(",")]
    for name in reversed(families):
        if name in GENERIC_FONT_FILES:
            return name
    for name in families:
        stem = Path(name).stem
        if "mono" in stem or "consolas" in stem or "courier" in stem:
            return "monospace"
    return "sans-serif"
