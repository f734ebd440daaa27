"""Named style presets.

Each preset only lists what differs from the per-category defaults;
:func:`resolve_theme` fills in the rest so renderers always receive a
complete :class:`StyleSet`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_THEME = "wardley"


@dataclass(frozen=True)
class ComponentStyle:
    fill: str = "white"
    stroke: str = "black"
    stroke_width: float = 1
    radius: float = 5
    evolved: str = "red"
    evolved_fill: str = "white"
    text_color: str = "black"
    evolved_text_color: str = "red"
    font_size: str = "12px"
    font_weight: str = "normal"


@dataclass(frozen=True)
class AnchorStyle:
    fill: str = "#F59E0B"
    stroke: str = "#D97706"
    stroke_width: float = 2
    radius: float = 8
    text_color: str = "black"
    font_size: str = "14px"
    font_weight: str = "bold"


@dataclass(frozen=True)
class LinkStyle:
    stroke: str = "grey"
    evolved_stroke: str = "red"
    stroke_width: float = 1


@dataclass(frozen=True)
class NoteStyle:
    text_color: str = "black"
    font_size: str = "12px"
    font_weight: str = "bold"


@dataclass(frozen=True)
class AnnotationStyle:
    fill: str = "white"
    stroke: str = "#595959"
    stroke_width: float = 2
    text_color: str = "black"
    box_fill: str = "white"
    box_stroke: str = "#595959"
    box_stroke_width: float = 1
    box_text_color: str = "black"


@dataclass(frozen=True)
class TextStyle:
    color: str = "black"
    font_size: str = "13px"
    title_font_size: str = "16px"
    title_font_weight: str = "bold"


@dataclass(frozen=True)
class StyleSet:
    name: str
    class_name: str
    font_family: str = "sans-serif"
    stroke: str = "black"
    background: str = "white"
    evolution_separation_stroke: str = "#b8b8b8"
    pipeline_arrow_stroke: str = "black"
    component: ComponentStyle = field(default_factory=ComponentStyle)
    anchor: AnchorStyle = field(default_factory=AnchorStyle)
    link: LinkStyle = field(default_factory=LinkStyle)
    note: NoteStyle = field(default_factory=NoteStyle)
    annotation: AnnotationStyle = field(default_factory=AnnotationStyle)
    text: TextStyle = field(default_factory=TextStyle)


_CATEGORIES = {
    "component": ComponentStyle,
    "anchor": AnchorStyle,
    "link": LinkStyle,
    "note": NoteStyle,
    "annotation": AnnotationStyle,
    "text": TextStyle,
}

_THEMES: Dict[str, Dict[str, Any]] = {
    "wardley": {
        "font_family": "Consolas, Lucida Console, monospace",
        "background": "url(#wardleyGradient)",
        "component": {"radius": 6, "font_size": "13px"},
        "link": {"stroke": "black"},
    },
    "plain": {
        "font_family": '"Helvetica Neue", Helvetica, Arial, sans-serif',
        "evolution_separation_stroke": "black",
        "component": {"font_size": "13px"},
    },
    "colour": {
        "font_family": '"Helvetica Neue", Helvetica, Arial, sans-serif',
        "stroke": "#c23667",
        "evolution_separation_stroke": "#b8b8b8",
        "pipeline_arrow_stroke": "#8cb358",
        "component": {
            "stroke": "#8cb358",
            "stroke_width": 2,
            "radius": 5,
            "evolved": "#ea7f5b",
            "text_color": "#486b1a",
            "evolved_text_color": "#ea7f5b",
        },
        "link": {"stroke": "#5c5c5c", "evolved_stroke": "#ea7f5b"},
        "note": {"text_color": "#c23667"},
        "annotation": {"stroke": "#8cb358", "box_stroke": "#8cb358", "box_fill": "#f5faef"},
        "text": {"color": "#486b1a"},
    },
    "dark": {
        "font_family": '"Helvetica Neue", Helvetica, Arial, sans-serif',
        "stroke": "white",
        "background": "#353347",
        "evolution_separation_stroke": "#8c8995",
        "pipeline_arrow_stroke": "white",
        "component": {
            "fill": "#353347",
            "stroke": "white",
            "evolved": "#ea7f5b",
            "evolved_fill": "#353347",
            "text_color": "white",
            "evolved_text_color": "#ea7f5b",
        },
        "anchor": {"text_color": "white"},
        "link": {"stroke": "white", "evolved_stroke": "#ea7f5b"},
        "note": {"text_color": "white"},
        "annotation": {
            "fill": "#353347",
            "stroke": "white",
            "text_color": "white",
            "box_fill": "#353347",
            "box_stroke": "white",
            "box_text_color": "white",
        },
        "text": {"color": "white"},
    },
    "handwritten": {
        "font_family": '"Gloria Hallelujah", cursive',
        "evolution_separation_stroke": "black",
        "component": {"font_size": "13px"},
        "link": {"stroke": "black"},
    },
    "octo": {
        "font_family": '-apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif',
        "stroke": "#24292f",
        "background": "url(#octoGradient)",
        "evolution_separation_stroke": "#d0d7de",
        "component": {
            "stroke": "#0969da",
            "stroke_width": 2,
            "evolved": "#cf222e",
            "text_color": "#24292f",
            "evolved_text_color": "#cf222e",
            "font_weight": "600",
        },
        "anchor": {"text_color": "#24292f"},
        "link": {"stroke": "#57606a", "evolved_stroke": "#cf222e"},
        "note": {"text_color": "#24292f"},
        "annotation": {"stroke": "#57606a", "box_stroke": "#d0d7de", "box_text_color": "#24292f"},
        "text": {"color": "#57606a"},
    },
}


def theme_names() -> List[str]:
    return list(_THEMES)


def is_known_theme(name: Optional[str]) -> bool:
    return name is not None and name in _THEMES


def resolve_theme(name: Optional[str]) -> StyleSet:
    """Return the fully populated style set for ``name``.

    Unknown or missing names resolve to the default theme.
    """
    if not is_known_theme(name):
        if name is not None:
            logger.debug('unknown theme "%s", using "%s"', name, DEFAULT_THEME)
        name = DEFAULT_THEME
    return _build_style_set(name, _THEMES[name])


def _build_style_set(name: str, spec: Dict[str, Any]) -> StyleSet:
    values: Dict[str, Any] = {}
    for key, value in spec.items():
        category = _CATEGORIES.get(key)
        values[key] = category(**value) if category is not None else value
    return StyleSet(name=name, class_name=name, **values)
