"""Map model consumed by the renderer.

The textual map notation is parsed elsewhere; this module only turns the
parser's JSON/dict output into immutable records.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

COMPONENT_TYPES = ("component", "anchor", "market", "ecosystem", "pipeline-member")

DEFAULT_ANNOTATIONS_POSITION = (0.72, 0.03)


class MapModelError(ValueError):
    """Raised when the map model is structurally unusable (e.g. a nameless component)."""

    def __init__(self, message: str, code: str = "E_MODEL") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class LabelOffset:
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass(frozen=True)
class Component:
    id: str
    name: str
    maturity: float
    visibility: float
    type: str = "component"
    evolved: bool = False
    evolve_maturity: Optional[float] = None
    label: LabelOffset = field(default_factory=LabelOffset)
    hop_distance: Optional[int] = None


@dataclass(frozen=True)
class Link:
    start: str
    end: str


@dataclass(frozen=True)
class Pipeline:
    name: str
    visibility: float
    maturity1: float = 0.2
    maturity2: float = 0.8
    hidden: bool = False


@dataclass(frozen=True)
class Note:
    text: str
    visibility: float = 0.5
    maturity: float = 0.5


@dataclass(frozen=True)
class AnnotationOccurrence:
    visibility: float
    maturity: float


@dataclass(frozen=True)
class Annotation:
    number: int
    text: str = ""
    occurrences: Tuple[AnnotationOccurrence, ...] = ()


@dataclass(frozen=True)
class EvolutionStage:
    l1: str
    l2: str = ""


DEFAULT_EVOLUTION_STAGES = (
    EvolutionStage("Genesis"),
    EvolutionStage("Custom Built"),
    EvolutionStage("Product", "(+rental)"),
    EvolutionStage("Commodity", "(+utility)"),
)


@dataclass(frozen=True)
class Presentation:
    style: Optional[str] = None
    annotations_position: Tuple[float, float] = DEFAULT_ANNOTATIONS_POSITION


@dataclass(frozen=True)
class MapModel:
    title: str = ""
    components: Tuple[Component, ...] = ()
    anchors: Tuple[Component, ...] = ()
    links: Tuple[Link, ...] = ()
    pipelines: Tuple[Pipeline, ...] = ()
    notes: Tuple[Note, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    evolution: Tuple[EvolutionStage, ...] = DEFAULT_EVOLUTION_STAGES
    presentation: Presentation = field(default_factory=Presentation)


def map_from_json(text: str) -> MapModel:
    """Build a :class:`MapModel` from the parser's JSON output."""
    payload = json.loads(text)
    if not isinstance(payload, Mapping):
        raise MapModelError("map model must be a JSON object")
    return map_from_dict(payload)


def map_from_dict(data: Mapping[str, Any]) -> MapModel:
    components = tuple(
        _component_from_dict(entry, f"components[{idx}]")
        for idx, entry in enumerate(_list(data, "components"))
    )
    anchors = tuple(
        _component_from_dict(entry, f"anchors[{idx}]", force_type="anchor")
        for idx, entry in enumerate(_list(data, "anchors"))
    )
    links = tuple(
        Link(start=str(entry.get("start", "")), end=str(entry.get("end", "")))
        for entry in _list(data, "links")
    )
    pipelines = tuple(
        Pipeline(
            name=str(entry.get("name", "")),
            visibility=_number(entry, "visibility", 0.5, "pipeline"),
            maturity1=_number(entry, "maturity1", 0.2, "pipeline"),
            maturity2=_number(entry, "maturity2", 0.8, "pipeline"),
            hidden=bool(entry.get("hidden", False)),
        )
        for entry in _list(data, "pipelines")
    )
    notes = tuple(
        Note(
            text=str(entry.get("text", "")),
            visibility=_number(entry, "visibility", 0.5, "note"),
            maturity=_number(entry, "maturity", 0.5, "note"),
        )
        for entry in _list(data, "notes")
    )
    annotations = tuple(
        _annotation_from_dict(entry, idx) for idx, entry in enumerate(_list(data, "annotations"))
    )

    stages = DEFAULT_EVOLUTION_STAGES
    raw_stages = _list(data, "evolution")
    if raw_stages:
        if len(raw_stages) != 4:
            raise MapModelError("evolution must define exactly four stages")
        stages = tuple(
            EvolutionStage(l1=str(stage.get("l1", "")), l2=str(stage.get("l2", "") or ""))
            for stage in raw_stages
        )

    return MapModel(
        title=str(data.get("title") or ""),
        components=components,
        anchors=anchors,
        links=links,
        pipelines=pipelines,
        notes=notes,
        annotations=annotations,
        evolution=stages,
        presentation=_presentation_from_dict(_mapping(data.get("presentation"), "presentation")),
    )


def _component_from_dict(
    entry: Mapping[str, Any], where: str, force_type: Optional[str] = None
) -> Component:
    name = entry.get("name")
    if name is None or not str(name).strip():
        raise MapModelError(f"{where} has no name")
    name = str(name)

    comp_type = force_type or str(entry.get("type") or "component")
    if comp_type not in COMPONENT_TYPES:
        comp_type = "component"

    evolve_maturity = entry.get("evolveMaturity")
    if evolve_maturity is not None:
        evolve_maturity = _number(entry, "evolveMaturity", None, where)

    label = _mapping(entry.get("label"), f"{where}.label")
    return Component(
        id=str(entry.get("id") or name),
        name=name,
        maturity=_number(entry, "maturity", 0.0, where),
        visibility=_number(entry, "visibility", 0.0, where),
        type=comp_type,
        evolved=bool(entry.get("evolved", False)),
        evolve_maturity=evolve_maturity,
        label=LabelOffset(
            x=_number(label, "x", None, f"{where}.label"),
            y=_number(label, "y", None, f"{where}.label"),
        ),
    )


def _annotation_from_dict(entry: Mapping[str, Any], idx: int) -> Annotation:
    # The parser historically spells the key "occurances".
    raw = entry.get("occurrences")
    if raw is None:
        raw = entry.get("occurances") or []
    if not isinstance(raw, list):
        raise MapModelError(f"annotations[{idx}].occurrences must be a list")
    occurrences = []
    for n, pos in enumerate(raw):
        where = f"annotations[{idx}].occurrences[{n}]"
        pos = _mapping(pos, where)
        occurrences.append(
            AnnotationOccurrence(
                visibility=_number(pos, "visibility", 0.0, where),
                maturity=_number(pos, "maturity", 0.0, where),
            )
        )
    number = entry.get("number", idx + 1)
    try:
        number = int(number)
    except (TypeError, ValueError) as exc:
        raise MapModelError(f"annotations[{idx}].number is not an integer") from exc
    return Annotation(
        number=number, text=str(entry.get("text") or ""), occurrences=tuple(occurrences)
    )


def _presentation_from_dict(entry: Mapping[str, Any]) -> Presentation:
    position = DEFAULT_ANNOTATIONS_POSITION
    annotations = _mapping(entry.get("annotations"), "presentation.annotations")
    if annotations:
        position = (
            _number(annotations, "visibility", DEFAULT_ANNOTATIONS_POSITION[0], "presentation"),
            _number(annotations, "maturity", DEFAULT_ANNOTATIONS_POSITION[1], "presentation"),
        )
    style = entry.get("style")
    return Presentation(style=str(style) if style else None, annotations_position=position)


def _list(data: Mapping[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise MapModelError(f"{key} must be a list")
    for idx, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise MapModelError(f"{key}[{idx}] must be an object, got {item!r}")
    return value


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MapModelError(f"{where} must be an object, got {value!r}")
    return value


def _number(
    entry: Mapping[str, Any], key: str, default: Optional[float], where: str
) -> Optional[float]:
    value = entry.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise MapModelError(f"{where}.{key} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MapModelError(f"{where}.{key} must be a number, got {value!r}") from exc
    if math.isnan(number):
        raise MapModelError(f"{where}.{key} is NaN")
    return number
