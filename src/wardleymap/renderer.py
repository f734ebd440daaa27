"""Render a map model to a standalone SVG document (and optionally PNG)."""
from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from .elements import MapElements, target_maturity
from .geometry import BOTTOM_MARGIN, LEFT_MARGIN, RIGHT_MARGIN, TOP_MARGIN, clamp_unit, to_x, to_y
from .hops import color_for_distance, link_distance, opacity_for_distance
from .model import Component, MapModel
from .text import parse_font_size, wrap_lines
from .themes import DEFAULT_THEME, StyleSet, is_known_theme, resolve_theme

try:  # pragma: no cover - depends on the native cairo library being present
    import cairosvg
except (ImportError, OSError):  # pragma: no cover
    cairosvg = None

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

LAYER_IDS = (
    "links",
    "evolvingLinks",
    "pipelines",
    "anchors",
    "components",
    "notes",
    "annotations",
    "annotationBox",
    "title",
)

LABEL_WRAP_CHARS = 14
LABEL_WRAP_WIDTH = 90.0
LABEL_LINE_STEP = 15
ANNOTATION_BOX_WIDTH = 200
MARKET_INNER_RADIUS = 10


class RasterUnavailableError(RuntimeError):
    """Raised when PNG output is requested but CairoSVG cannot be loaded."""


def render_svg(
    model: MapModel,
    width: float,
    height: float,
    theme: Optional[str] = DEFAULT_THEME,
) -> str:
    """Lay out ``model`` on a ``width`` x ``height`` canvas and return SVG markup."""
    if not (0 < width < math.inf and 0 < height < math.inf):
        raise ValueError(f"width and height must be positive and finite, got {width}x{height}")

    style_name = model.presentation.style if is_known_theme(model.presentation.style) else theme
    styles = resolve_theme(style_name)
    elements = MapElements(model)
    canvas = _Canvas(width, height, styles)

    svg_root = ET.Element(
        _q("svg"),
        {
            "width": _fmt(width),
            "height": _fmt(height),
            "viewBox": f"0 0 {_fmt(width)} {_fmt(height)}",
            "preserveAspectRatio": "xMidYMid meet",
            "class": styles.class_name,
            "font-family": styles.font_family,
        },
    )
    svg_root.append(_build_defs(styles))
    ET.SubElement(
        svg_root,
        _q("rect"),
        {"id": "background", "x": "0", "y": "0", "width": _fmt(width), "height": _fmt(height), "fill": styles.background},
    )
    svg_root.append(_build_grid(canvas, model))

    layers: Dict[str, ET.Element] = {}
    content = ET.SubElement(svg_root, _q("g"), {"id": "mapContent"})
    for layer_id in LAYER_IDS:
        layers[layer_id] = ET.SubElement(content, _q("g"), {"id": layer_id})

    _draw_links(layers["links"], canvas, model, elements)
    _draw_evolving_links(layers["evolvingLinks"], canvas, elements)
    _draw_pipelines(layers["pipelines"], canvas, model)
    for anchor in elements.get_anchors():
        layers["anchors"].append(_draw_anchor(canvas, anchor))
    for component in elements.get_merged_components():
        if component.type == "anchor":
            continue
        layers["components"].append(_draw_component(canvas, component))
    for target in elements.get_evolution_targets():
        placed = replace(target, maturity=target_maturity(target))
        layers["components"].append(
            _draw_component(canvas, placed, element_id=f"component-{target.id}-evolved")
        )
    _draw_notes(layers["notes"], canvas, model)
    _draw_annotations(layers["annotations"], layers["annotationBox"], canvas, model)
    _draw_title(layers["title"], canvas, model)

    return _pretty_xml(svg_root)


def render_png(
    svg_text: str,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    scale: float = 1.0,
) -> bytes:
    """Rasterize SVG markup with CairoSVG.

    ``width``/``height`` set the output pixel size; otherwise ``scale``
    multiplies the document size.
    """
    if cairosvg is None:
        raise RasterUnavailableError(
            "PNG output requires CairoSVG and the cairo library; install them or use SVG output."
        )
    if scale <= 0:
        raise ValueError("scale must be > 0")
    if width or height:
        scale = 1.0
    return cairosvg.svg2png(
        bytestring=svg_text.encode("utf-8"),
        output_width=width,
        output_height=height,
        scale=scale,
    )


class _Canvas:
    """Pixel placement for one render; all domain coordinates are clamped here."""

    def __init__(self, width: float, height: float, styles: StyleSet) -> None:
        self.width = width
        self.height = height
        self.styles = styles

    def x(self, maturity: float) -> float:
        return to_x(clamp_unit(maturity), self.width)

    def y(self, visibility: float) -> float:
        return to_y(clamp_unit(visibility), self.height)

    def point(self, maturity: float, visibility: float) -> Tuple[float, float]:
        return self.x(maturity), self.y(visibility)


def _build_defs(styles: StyleSet) -> ET.Element:
    defs = ET.Element(_q("defs"))

    def gradient(gradient_id: str, stops: List[Tuple[str, str]], **attrs: str) -> None:
        node = ET.SubElement(defs, _q("linearGradient"), {"id": gradient_id, **attrs})
        for offset, color in stops:
            ET.SubElement(node, _q("stop"), {"offset": offset, "stop-color": color, "stop-opacity": "1"})

    horizontal = {"gradientUnits": "objectBoundingBox", "spreadMethod": "pad", "x1": "0%", "x2": "100%", "y1": "0%", "y2": "0%"}
    gradient(
        "wardleyGradient",
        [("0%", "rgb(196, 196, 196)"), ("30%", "white"), ("70%", "white"), ("100%", "rgb(196, 196, 196)")],
        **horizontal,
    )
    gradient(
        "octoGradient",
        [("0%", "#E7E9EE"), ("30%", "white"), ("70%", "white"), ("100%", "#E7E9EE")],
        **horizontal,
    )
    gradient(
        "arrowGradient",
        [("0%", "#ffffff"), ("40%", "#808080"), ("100%", "#808080")],
        x1="0%", y1="0%", x2="100%", y2="0%",
    )
    gradient(
        "accelGradient",
        [("0%", "white"), ("100%", "#8c8995")],
        spreadMethod="pad", x1="0%", y1="64%", x2="76%", y2="0%",
    )

    hatch = ET.SubElement(
        defs, _q("pattern"), {"id": "diagonalHatch", "patternUnits": "userSpaceOnUse", "width": "4", "height": "4"}
    )
    ET.SubElement(
        hatch,
        _q("path"),
        {"d": "M 3,-1 l 2,2 M 0,0 l 4,4 M -1,3 l 2,2", "stroke": "grey", "stroke-width": "1", "opacity": "0.5"},
    )

    def marker(marker_id: str, size: float, ref_x: str, fill: str) -> None:
        node = ET.SubElement(
            defs,
            _q("marker"),
            {
                "id": marker_id,
                "markerWidth": _fmt(size),
                "markerHeight": _fmt(size),
                "refX": ref_x,
                "refY": "0",
                "viewBox": "0 -5 10 10",
                "orient": "auto",
            },
        )
        ET.SubElement(node, _q("path"), {"d": "M0,-5L10,0L0,5", "fill": fill})

    marker("arrow", 12, "9", styles.link.evolved_stroke)
    marker("graphArrow", 12 / (styles.link.stroke_width or 1), "9", styles.stroke)
    marker("pipelineArrow", 5, "9", styles.pipeline_arrow_stroke)

    glow = ET.SubElement(defs, _q("filter"), {"id": "anchorGlow"})
    ET.SubElement(
        glow,
        _q("feDropShadow"),
        {"dx": "0", "dy": "0", "stdDeviation": "4", "flood-color": "#7C3AED", "flood-opacity": "0.6"},
    )
    return defs


def _build_grid(canvas: _Canvas, model: MapModel) -> ET.Element:
    styles = canvas.styles
    width, height = canvas.width, canvas.height
    stroke = styles.evolution_separation_stroke
    text_color = styles.text.color
    font_size = styles.text.font_size

    top = TOP_MARGIN
    bottom = height - BOTTOM_MARGIN
    middle = top + (bottom - top) / 2
    right = width - RIGHT_MARGIN

    grid = ET.Element(_q("g"), {"id": "grid"})
    axis_label = ET.SubElement(
        grid,
        _q("text"),
        {
            "x": "15",
            "y": _fmt(middle),
            "font-size": font_size,
            "fill": text_color,
            "text-anchor": "middle",
            "transform": f"rotate(-90, 15, {_fmt(middle)})",
        },
    )
    axis_label.text = "Value Chain"

    ET.SubElement(
        grid,
        _q("line"),
        {"x1": _fmt(LEFT_MARGIN), "y1": _fmt(top), "x2": _fmt(LEFT_MARGIN), "y2": _fmt(bottom), "stroke": stroke, "stroke-width": "1"},
    )
    ET.SubElement(
        grid,
        _q("polygon"),
        {"points": f"25,{_fmt(top + 5)} 30,{_fmt(top - 5)} 35,{_fmt(top + 5)}", "fill": stroke},
    )
    for label, y in (("Visible", top + 15), ("Invisible", bottom - 5)):
        node = ET.SubElement(grid, _q("text"), {"x": "35", "y": _fmt(y), "font-size": "10px", "fill": text_color})
        node.text = label

    ET.SubElement(
        grid,
        _q("line"),
        {"x1": _fmt(LEFT_MARGIN), "y1": _fmt(bottom), "x2": _fmt(right), "y2": _fmt(bottom), "stroke": stroke, "stroke-width": "1"},
    )
    ET.SubElement(
        grid,
        _q("polygon"),
        {"points": f"{_fmt(width - 15)},{_fmt(bottom - 5)} {_fmt(width - 5)},{_fmt(bottom)} {_fmt(width - 15)},{_fmt(bottom + 5)}", "fill": stroke},
    )

    for boundary in (0.25, 0.5, 0.75):
        x = _fmt(to_x(boundary, width))
        ET.SubElement(
            grid,
            _q("line"),
            {"x1": x, "y1": _fmt(top), "x2": x, "y2": _fmt(bottom), "stroke": stroke, "stroke-width": "1", "stroke-dasharray": "5,5"},
        )

    labels = ET.SubElement(grid, _q("g"), {"id": "evolutionLabels", "font-size": "11px", "fill": text_color})
    for idx, stage in enumerate(model.evolution):
        center = to_x(0.125 + 0.25 * idx, width)
        node = ET.SubElement(labels, _q("text"), {"x": _fmt(center), "y": _fmt(bottom + 15), "text-anchor": "middle"})
        node.text = stage.l1
        if stage.l2:
            sub = ET.SubElement(node, _q("tspan"), {"x": _fmt(center), "dy": "1.1em", "font-size": "9px"})
            sub.text = stage.l2

    caption = ET.SubElement(
        grid,
        _q("text"),
        {"x": _fmt(width / 2), "y": _fmt(height - 5), "font-size": font_size, "fill": text_color, "text-anchor": "middle"},
    )
    caption.text = "Evolution"
    return grid


def _draw_links(layer: ET.Element, canvas: _Canvas, model: MapModel, elements: MapElements) -> None:
    link_style = canvas.styles.link
    for link in model.links:
        start = elements.find_component(link.start)
        end = elements.find_component(link.end)
        if start is None or end is None:
            logger.debug("link %s -> %s skipped: unknown component", link.start, link.end)
            continue
        x1, y1 = canvas.point(start.maturity, start.visibility)
        x2, y2 = canvas.point(end.maturity, end.visibility)
        distance = link_distance(start.hop_distance, end.hop_distance)
        if start.evolved or end.evolved:
            stroke = link_style.evolved_stroke
        else:
            stroke = color_for_distance(distance) or link_style.stroke
        ET.SubElement(
            layer,
            _q("line"),
            {
                "x1": _fmt(x1),
                "y1": _fmt(y1),
                "x2": _fmt(x2),
                "y2": _fmt(y2),
                "stroke": stroke,
                "stroke-width": _fmt(link_style.stroke_width),
                "opacity": _fmt(opacity_for_distance(distance)),
            },
        )


def _draw_evolving_links(layer: ET.Element, canvas: _Canvas, elements: MapElements) -> None:
    link_style = canvas.styles.link
    for evolving, evolved in elements.evolution_pairs():
        x1, y1 = canvas.point(evolving.maturity, evolving.visibility)
        x2 = canvas.x(target_maturity(evolved))
        ET.SubElement(
            layer,
            _q("line"),
            {
                "x1": _fmt(x1),
                "y1": _fmt(y1),
                "x2": _fmt(x2),
                "y2": _fmt(y1),
                "stroke": link_style.evolved_stroke,
                "stroke-width": _fmt(link_style.stroke_width),
                "stroke-dasharray": "5,5",
                "marker-end": "url(#arrow)",
            },
        )


def _draw_pipelines(layer: ET.Element, canvas: _Canvas, model: MapModel) -> None:
    for idx, pipeline in enumerate(model.pipelines):
        if pipeline.hidden:
            continue
        y = canvas.y(pipeline.visibility)
        x1 = canvas.x(min(pipeline.maturity1, pipeline.maturity2))
        x2 = canvas.x(max(pipeline.maturity1, pipeline.maturity2))
        group = ET.SubElement(layer, _q("g"), {"id": f"pipeline-{idx}"})
        ET.SubElement(
            group,
            _q("rect"),
            {
                "x": _fmt(x1),
                "y": _fmt(y - 15),
                "width": _fmt(x2 - x1),
                "height": "30",
                "fill": "none",
                "stroke": canvas.styles.component.stroke,
                "stroke-width": "1",
                "rx": "5",
                "ry": "5",
            },
        )
        label = ET.SubElement(
            group,
            _q("text"),
            {"x": _fmt(x1 + 5), "y": _fmt(y - 20), "font-size": "12px", "fill": canvas.styles.stroke},
        )
        label.text = pipeline.name


def _draw_anchor(canvas: _Canvas, anchor: Component) -> ET.Element:
    style = canvas.styles.anchor
    x, y = canvas.point(anchor.maturity, anchor.visibility)
    group = ET.Element(_q("g"), {"id": f"anchor-{anchor.id}"})
    ET.SubElement(
        group,
        _q("circle"),
        {
            "cx": _fmt(x),
            "cy": _fmt(y),
            "r": _fmt(style.radius),
            "fill": style.fill,
            "stroke": style.stroke,
            "stroke-width": _fmt(style.stroke_width),
            "filter": "url(#anchorGlow)",
        },
    )
    label = ET.SubElement(
        group,
        _q("text"),
        {
            "x": _fmt(x + _offset(anchor.label.x, 10)),
            "y": _fmt(y + _offset(anchor.label.y, -10)),
            "font-size": style.font_size,
            "font-weight": style.font_weight,
            "fill": style.text_color,
        },
    )
    label.text = anchor.name
    return group


def _draw_component(canvas: _Canvas, component: Component, element_id: Optional[str] = None) -> ET.Element:
    style = canvas.styles.component
    x, y = canvas.point(component.maturity, component.visibility)
    hop_color = color_for_distance(component.hop_distance)
    opacity = opacity_for_distance(component.hop_distance)

    # Evolved styling wins over hop-distance colouring.
    if component.evolved:
        stroke = style.evolved
        text_color = style.evolved_text_color
    else:
        stroke = hop_color or style.stroke
        text_color = hop_color or style.text_color

    group = ET.Element(
        _q("g"),
        {"id": element_id or f"component-{component.id}", "class": component.type, "opacity": _fmt(opacity)},
    )
    symbol = _SYMBOLS.get(component.type, _circle_symbol)
    group.append(symbol(x, y, component.evolved, stroke, canvas.styles))
    group.append(
        _component_label(
            component.name,
            x + _offset(component.label.x, 5),
            y + _offset(component.label.y, -10),
            text_color,
            canvas.styles,
        )
    )
    return group


def _circle_symbol(x: float, y: float, evolved: bool, stroke: str, styles: StyleSet) -> ET.Element:
    style = styles.component
    return ET.Element(
        _q("circle"),
        {
            "cx": _fmt(x),
            "cy": _fmt(y),
            "r": _fmt(style.radius),
            "fill": style.evolved_fill if evolved else style.fill,
            "stroke": stroke,
            "stroke-width": _fmt(style.stroke_width),
        },
    )


def _market_symbol(x: float, y: float, evolved: bool, stroke: str, styles: StyleSet) -> ET.Element:
    fill = styles.component.evolved_fill if evolved else styles.component.fill
    group = ET.Element(_q("g"), {"transform": f"translate({_fmt(x)},{_fmt(y)})"})
    ET.SubElement(
        group,
        _q("circle"),
        {"r": _fmt(MARKET_INNER_RADIUS * 1.8), "fill": fill, "stroke": stroke, "stroke-width": "1"},
    )
    corners = [
        (
            round(MARKET_INNER_RADIUS * math.cos(math.radians(30 + 120 * idx))),
            round(MARKET_INNER_RADIUS * math.sin(math.radians(30 + 120 * idx))),
        )
        for idx in range(3)
    ]
    path = " L".join(f"{cx},{cy}" for cx, cy in corners)
    ET.SubElement(
        group,
        _q("path"),
        {"d": f"M{path} Z", "stroke": "black", "stroke-width": "2", "fill": "none", "opacity": "0.8"},
    )
    for cx, cy in corners:
        ET.SubElement(
            group,
            _q("circle"),
            {"cx": str(cx), "cy": str(cy), "r": "5", "fill": styles.component.fill, "stroke": styles.component.stroke, "stroke-width": "3"},
        )
    return group


def _ecosystem_symbol(x: float, y: float, evolved: bool, stroke: str, styles: StyleSet) -> ET.Element:
    cx, cy = _fmt(x), _fmt(y)
    outer_fill = styles.component.evolved_fill if evolved else "#d7d7d7"
    group = ET.Element(_q("g"))
    ET.SubElement(group, _q("circle"), {"cx": cx, "cy": cy, "r": "30", "fill": outer_fill, "stroke": stroke, "stroke-width": "1"})
    ET.SubElement(group, _q("circle"), {"cx": cx, "cy": cy, "r": "25", "fill": "white", "stroke": "#9e9b9e", "stroke-width": "1"})
    ET.SubElement(group, _q("circle"), {"cx": cx, "cy": cy, "r": "25", "fill": "url(#diagonalHatch)"})
    ET.SubElement(group, _q("circle"), {"cx": cx, "cy": cy, "r": "10", "fill": "white", "stroke": "#6e6e6e", "stroke-width": "1"})
    return group


_SYMBOLS: Dict[str, Callable[[float, float, bool, str, StyleSet], ET.Element]] = {
    "component": _circle_symbol,
    "pipeline-member": _circle_symbol,
    "market": _market_symbol,
    "ecosystem": _ecosystem_symbol,
}


def _component_label(text: str, x: float, y: float, fill: str, styles: StyleSet) -> ET.Element:
    style = styles.component
    node = ET.Element(
        _q("text"),
        {
            "x": _fmt(x),
            "y": _fmt(y),
            "font-size": style.font_size,
            "font-weight": style.font_weight,
            "fill": fill,
        },
    )
    if len(text) <= LABEL_WRAP_CHARS:
        node.text = text
        return node

    font_size = parse_font_size(style.font_size)
    lines = wrap_lines(text, LABEL_WRAP_WIDTH, font_size, styles.font_family)
    for idx, line in enumerate(lines):
        tspan = ET.SubElement(node, _q("tspan"), {"x": _fmt(x), "dy": "0" if idx == 0 else str(LABEL_LINE_STEP)})
        tspan.text = line
    return node


def _draw_notes(layer: ET.Element, canvas: _Canvas, model: MapModel) -> None:
    style = canvas.styles.note
    for idx, note in enumerate(model.notes):
        x, y = canvas.point(note.maturity, note.visibility)
        node = ET.SubElement(
            layer,
            _q("text"),
            {
                "id": f"note-{idx}",
                "x": _fmt(x),
                "y": _fmt(y),
                "font-size": style.font_size,
                "font-weight": style.font_weight,
                "fill": style.text_color,
            },
        )
        node.text = note.text


def _draw_annotations(marker_layer: ET.Element, box_layer: ET.Element, canvas: _Canvas, model: MapModel) -> None:
    style = canvas.styles.annotation
    for idx, annotation in enumerate(model.annotations):
        for occurrence_idx, occurrence in enumerate(annotation.occurrences):
            x, y = canvas.point(occurrence.maturity, occurrence.visibility)
            group = ET.SubElement(marker_layer, _q("g"), {"id": f"annotation-{idx}-{occurrence_idx}"})
            ET.SubElement(
                group,
                _q("circle"),
                {
                    "cx": _fmt(x),
                    "cy": _fmt(y),
                    "r": "12",
                    "fill": style.fill,
                    "stroke": style.stroke,
                    "stroke-width": _fmt(style.stroke_width),
                },
            )
            number = ET.SubElement(
                group,
                _q("text"),
                {
                    "x": _fmt(x),
                    "y": _fmt(y + 4),
                    "text-anchor": "middle",
                    "font-size": "11px",
                    "font-weight": "bold",
                    "fill": style.text_color,
                },
            )
            number.text = str(annotation.number)

    if not model.annotations:
        return

    visibility, maturity = model.presentation.annotations_position
    box_x, box_y = canvas.point(maturity, visibility)
    box_layer.set("transform", f"translate({_fmt(box_x)}, {_fmt(box_y)})")
    ET.SubElement(
        box_layer,
        _q("rect"),
        {
            "x": "0",
            "y": "0",
            "width": str(ANNOTATION_BOX_WIDTH),
            "height": str(len(model.annotations) * 20 + 10),
            "fill": style.box_fill,
            "stroke": style.box_stroke,
            "stroke-width": _fmt(style.box_stroke_width),
            "rx": "4",
            "ry": "4",
        },
    )
    text = ET.SubElement(
        box_layer,
        _q("text"),
        {"x": "5", "y": "5", "font-size": "12px", "fill": style.box_text_color},
    )
    for annotation in model.annotations:
        line = ET.SubElement(text, _q("tspan"), {"x": "5", "dy": "18"})
        line.text = f"{annotation.number}. {annotation.text}"


def _draw_title(layer: ET.Element, canvas: _Canvas, model: MapModel) -> None:
    if not model.title:
        return
    text_style = canvas.styles.text
    node = ET.SubElement(
        layer,
        _q("text"),
        {
            "x": "10",
            "y": "25",
            "font-size": text_style.title_font_size,
            "font-weight": text_style.title_font_weight,
            "fill": canvas.styles.stroke,
        },
    )
    node.text = model.title


def _offset(value: Optional[float], default: float) -> float:
    if value is None or not math.isfinite(value):
        return default
    return value


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _pretty_xml(element: ET.Element) -> str:
    ET.indent(element, space="  ")
    return ET.tostring(element, encoding="unicode")


def _fmt(value: float) -> str:
    if math.isclose(value, round(value)):
        return str(int(round(value)))
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


__all__ = ["render_svg", "render_png", "RasterUnavailableError", "LAYER_IDS"]
