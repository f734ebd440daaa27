"""Public API for wardleymap."""
from .hops import calculate_hop_distances
from .model import MapModel, MapModelError, map_from_dict, map_from_json
from .renderer import RasterUnavailableError, render_png, render_svg
from .themes import resolve_theme, theme_names

__all__ = [
    "render_svg",
    "render_png",
    "map_from_dict",
    "map_from_json",
    "resolve_theme",
    "theme_names",
    "calculate_hop_distances",
    "MapModel",
    "MapModelError",
    "RasterUnavailableError",
]
