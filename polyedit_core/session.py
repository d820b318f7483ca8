"""Editing session: the single owner of items, styles, view and selection."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from .config import EditorConfig
from .geometry import (
    Point,
    accumulate_bounds,
    all_finite,
    is_finite_point,
    nearest_segment,
    point_to_polyline_distance,
    polyline_length,
)
from .model import IdAllocator, PolylineItem, Selection
from .normalize import (
    FLATTENED_TYPES,
    coerce_color,
    coerce_index,
    coerce_label,
    normalize_document,
    normalize_polyline,
    polyline_points_from_entity,
    rgb_to_hex,
)
from .styles import StyleRegistry, line_type_from_name, normalize_layer_name, read_layer_config
from .viewport import Bounds, Viewport

logger = logging.getLogger(__name__)


class IOStatus(str, Enum):
    IDLE = "idle"
    OK = "ok"
    FAIL = "fail"


@dataclass
class Target:
    """What a pointer landed on: empty canvas, a point marker or a stroke."""

    kind: str = "canvas"
    item_id: Optional[str] = None
    point_index: Optional[int] = None


@dataclass
class RenderPolyline:
    id: str
    layer: str
    points: List[Point]
    style: Dict[str, Any]
    selected: bool = False


def _bounds_from_raw(bbox: Any) -> Optional[Bounds]:
    if not isinstance(bbox, Mapping):
        return None
    try:
        if "min" in bbox and "max" in bbox:
            lo, hi = bbox["min"], bbox["max"]
            bounds = Bounds(float(lo["x"]), float(lo["y"]), float(hi["x"]), float(hi["y"]))
        else:
            bounds = Bounds(float(bbox["minX"]), float(bbox["minY"]), float(bbox["maxX"]), float(bbox["maxY"]))
    except (KeyError, OverflowError, TypeError, ValueError):
        return None
    return bounds if bounds.is_valid() else None


class EditSession:
    """Owns the canonical item list and everything derived from it.

    Lookups by id and by source entity index are read-only projections rebuilt
    whenever ``revision`` moves; nothing holds a live pointer back into the
    list, so a stale id from an interrupted gesture simply finds nothing.
    """

    def __init__(self, config: Optional[EditorConfig] = None) -> None:
        self.config = config or EditorConfig()
        self.items: List[PolylineItem] = []
        self.styles = StyleRegistry()
        self.ids = IdAllocator()
        self.hidden_layers: Set[str] = set()
        self.viewport = Viewport(self.config.surface_width, self.config.surface_height)
        self.selection = Selection()
        self.entities: List[Mapping[str, Any]] = []
        self.json_text = ""
        self.copy_status = IOStatus.IDLE
        self.save_status = IOStatus.IDLE
        self._revision = 0
        self._lookup_revision = -1
        self._positions: Dict[str, int] = {}
        self._entity_ids: Dict[int, str] = {}

    # ------------------------------------------------------------------
    # Revision & derived lookups
    @property
    def revision(self) -> int:
        return self._revision

    def touch(self) -> None:
        self._revision += 1

    def _refresh_lookups(self) -> None:
        if self._lookup_revision == self._revision:
            return
        self._positions = {item.id: pos for pos, item in enumerate(self.items)}
        self._entity_ids = {}
        for item in self.items:
            if item.entity_index is not None and item.entity_index not in self._entity_ids:
                self._entity_ids[item.entity_index] = item.id
        self._lookup_revision = self._revision

    def position_of(self, item_id: Optional[str]) -> Optional[int]:
        if item_id is None:
            return None
        self._refresh_lookups()
        return self._positions.get(item_id)

    def item_by_id(self, item_id: Optional[str]) -> Optional[PolylineItem]:
        pos = self.position_of(item_id)
        return None if pos is None else self.items[pos]

    def id_for_entity(self, entity_index: int) -> Optional[str]:
        self._refresh_lookups()
        return self._entity_ids.get(entity_index)

    def entity_for(self, item: PolylineItem) -> Optional[Mapping[str, Any]]:
        if item.entity_index is None or item.entity_index >= len(self.entities):
            return None
        return self.entities[item.entity_index]

    # ------------------------------------------------------------------
    # Loading
    def _reset_document(self) -> None:
        self.items = []
        self.styles.reset()
        self.ids.reset()
        self.hidden_layers = set()
        self.selection.clear()
        self.entities = []

    def _candidate(
        self,
        points: Any,
        layer: Any,
        entity: Optional[Mapping[str, Any]],
        entity_index: Optional[int],
        rgb: Any,
    ) -> Dict[str, Any]:
        entity = entity or {}
        return {
            "vertices": points,
            "layer": layer if coerce_label(layer, "") else entity.get("layer"),
            "type": entity.get("type"),
            "entityIndex": entity_index,
            "lineOverride": {
                "color": rgb_to_hex(rgb),
                "type": line_type_from_name(entity.get("lineTypeName")),
            },
        }

    def load_parsed(self, raw: Any) -> int:
        """Replace the document with DXF parser output; returns the item count."""
        raw = raw if isinstance(raw, Mapping) else {}
        raw_entities = raw.get("entities")
        entities = [e if isinstance(e, Mapping) else {} for e in raw_entities] if isinstance(raw_entities, list) else []
        raw_polylines = raw.get("polylines")
        polylines = raw_polylines if isinstance(raw_polylines, list) else []

        ids = IdAllocator()
        used: Set[str] = set()
        items: List[PolylineItem] = []
        covered: Set[int] = set()
        # without entityIndex links, assume the parser already flattened every curve kind
        indexed = any(isinstance(p, Mapping) and coerce_index(p.get("entityIndex")) is not None for p in polylines)

        for polyline in polylines:
            if not isinstance(polyline, Mapping):
                continue
            index = coerce_index(polyline.get("entityIndex"))
            entity = entities[index] if index is not None and index < len(entities) else None
            if entity is None:
                index = None
            else:
                covered.add(index)
            candidate = self._candidate(polyline.get("vertices"), polyline.get("layer"), entity, index, polyline.get("rgb"))
            item = normalize_polyline(candidate, ids, used)
            if item is not None:
                item.source = {"entity": entity, "polyline": polyline}
                items.append(item)

        for index, entity in enumerate(entities):
            if index in covered:
                continue
            if polylines and not indexed and coerce_label(entity.get("type"), "").upper() in FLATTENED_TYPES:
                continue
            points = polyline_points_from_entity(entity)
            if points is None:
                continue
            candidate = self._candidate(points, entity.get("layer"), entity, index, entity.get("rgb"))
            item = normalize_polyline(candidate, ids, used)
            if item is not None:
                item.source = {"entity": entity}
                items.append(item)

        self._reset_document()
        self.ids = ids
        self.entities = entities
        self._apply_layer_table(raw.get("layers"))
        self.items = items
        for item in items:
            self.styles.ensure_style(item.layer)
        self.touch()

        content = self.content_bounds(visible_only=False) or _bounds_from_raw(raw.get("bbox"))
        self.viewport.fit_to_content(content, self.config.fit_padding)
        logger.info("Loaded %d polyline(s) from %d entities", len(items), len(entities))
        return len(items)

    def _apply_layer_table(self, layers: Any) -> None:
        if not isinstance(layers, list):
            return
        for entry in layers:
            if not isinstance(entry, Mapping):
                continue
            name = normalize_layer_name(entry.get("name"))
            line = self.styles.ensure_style(name).line
            color = coerce_color(entry.get("color"))
            if color is not None:
                line.color = color
            line_type = line_type_from_name(entry.get("lineTypeName"))
            if line_type is not None:
                line.type = line_type
            if entry.get("visible") is False:
                self.hidden_layers.add(name)

    def replace_document(self, items: Sequence[PolylineItem], layers: Any = None) -> None:
        """Swap in a new item list wholesale, keeping the source entity table."""
        entities = self.entities
        ids = self.ids
        self._reset_document()
        self.entities = entities
        self.ids = ids
        self.hidden_layers = read_layer_config(layers, self.styles)
        self.items = list(items)
        for item in self.items:
            self.styles.ensure_style(item.layer)
            entity = self.entity_for(item)
            if entity is not None and item.source is None:
                item.source = {"entity": entity}
        self.touch()

    def apply_json_text(self, text: Optional[str] = None) -> int:
        """Parse canonical JSON and replace the document.

        Returns the number of items applied; ``0`` leaves the session untouched.
        Raises ``ValueError`` for text that is not JSON at all.
        """
        return self.apply_document(json.loads(self.json_text if text is None else text))

    def apply_document(self, data: Any) -> int:
        """Replace the document from already-decoded canonical data."""
        ids = IdAllocator()
        items = normalize_document(data, ids)
        if not items:
            return 0
        self.ids = ids
        self.replace_document(items, data.get("layers") if isinstance(data, Mapping) else None)
        return len(items)

    def clear(self) -> None:
        self._reset_document()
        self.json_text = ""
        self.copy_status = IOStatus.IDLE
        self.save_status = IOStatus.IDLE
        self.viewport.reset()
        self.touch()

    # ------------------------------------------------------------------
    # Layers & visibility
    def layer_visible(self, layer: Any) -> bool:
        return normalize_layer_name(layer) not in self.hidden_layers

    def set_layer_visible(self, layer: Any, visible: bool) -> None:
        name = normalize_layer_name(layer)
        self.styles.ensure_style(name)
        if visible:
            self.hidden_layers.discard(name)
        else:
            self.hidden_layers.add(name)
        self.touch()

    def visible_layers(self) -> Set[str]:
        return {name for name in self.styles.names() if name not in self.hidden_layers}

    def visible_items(self) -> List[PolylineItem]:
        return [item for item in self.items if item.visible and self.layer_visible(item.layer)]

    def content_bounds(self, visible_only: bool = True) -> Optional[Bounds]:
        source = self.visible_items() if visible_only else self.items
        bbox = accumulate_bounds(item.points for item in source)
        return None if bbox is None else Bounds.from_bbox(bbox)

    def fit_to_content(self) -> bool:
        return self.viewport.fit_to_content(self.content_bounds(), self.config.fit_padding)

    # ------------------------------------------------------------------
    # Selection
    def selected_item(self) -> Optional[PolylineItem]:
        return self.item_by_id(self.selection.item_id)

    def select_item(self, item_id: str) -> bool:
        item = self.item_by_id(item_id)
        if item is None:
            return False
        self.selection.select_item(item)
        return True

    def select_point(self, item_id: str, index: int) -> bool:
        item = self.item_by_id(item_id)
        if item is None or not 0 <= index < len(item.points):
            return False
        self.selection.select_point(item, index)
        return True

    def select_entity(self, entity_index: int) -> bool:
        item_id = self.id_for_entity(entity_index)
        if item_id is None:
            return False
        return self.select_item(item_id)

    def validate_selection(self) -> None:
        item = self.selected_item()
        if item is None:
            self.selection.clear()
        elif self.selection.point_index is not None and self.selection.point_index >= len(item.points):
            self.selection.point_index = None

    # ------------------------------------------------------------------
    # Point-level edits
    def set_point(self, item_id: str, index: int, point: Point) -> bool:
        item = self.item_by_id(item_id)
        if item is None or not 0 <= index < len(item.points) or not is_finite_point(point):
            return False
        item.points[index] = (float(point[0]), float(point[1]))
        self.touch()
        return True

    def replace_points(self, item_id: str, points: Sequence[Point]) -> bool:
        item = self.item_by_id(item_id)
        if item is None or len(points) < 2 or not all_finite(points):
            return False
        item.points = [(float(x), float(y)) for x, y in points]
        self.touch()
        return True

    def insert_point(self, item_id: str, model_point: Point) -> Optional[int]:
        """Insert the projection of ``model_point`` on the nearest segment and select it."""
        item = self.item_by_id(item_id)
        if item is None or not is_finite_point(model_point):
            return None
        hit = nearest_segment(model_point, item.points)
        if hit is None:
            return None
        segment_index, projection, _ = hit
        index = segment_index + 1
        item.points.insert(index, projection)
        self.touch()
        self.selection.select_point(item, index)
        return index

    def delete_point(self, item_id: str, index: int) -> str:
        """Delete one point; returns ``"point"``, ``"item"`` or ``""`` when nothing changed."""
        item = self.item_by_id(item_id)
        if item is None or not 0 <= index < len(item.points):
            return ""
        if len(item.points) <= 2:
            self.delete_item(item_id)
            return "item"
        del item.points[index]
        self.touch()
        self.selection.select_point(item, max(0, index - 1))
        return "point"

    def delete_item(self, item_id: str) -> bool:
        pos = self.position_of(item_id)
        if pos is None:
            return False
        del self.items[pos]
        self.touch()
        if self.selection.item_id == item_id:
            self.selection.clear()
        return True

    # ------------------------------------------------------------------
    # Derived views
    def hit_test(self, model_point: Point, tolerance: float) -> Target:
        """Point markers win over strokes; the closest candidate within tolerance wins."""
        best_point: Tuple[float, Optional[str], Optional[int]] = (float("inf"), None, None)
        for item in self.visible_items():
            pts = np.asarray(item.points, dtype=float)
            dist = np.hypot(pts[:, 0] - model_point[0], pts[:, 1] - model_point[1])
            idx = int(np.argmin(dist))
            if dist[idx] <= tolerance and dist[idx] < best_point[0]:
                best_point = (float(dist[idx]), item.id, idx)
        if best_point[1] is not None:
            return Target(kind="point", item_id=best_point[1], point_index=best_point[2])

        best_stroke: Tuple[float, Optional[str]] = (float("inf"), None)
        for item in self.visible_items():
            dist = point_to_polyline_distance(model_point, item.points)
            if dist <= tolerance and dist < best_stroke[0]:
                best_stroke = (dist, item.id)
        if best_stroke[1] is not None:
            return Target(kind="stroke", item_id=best_stroke[1])
        return Target()

    def render_list(self) -> List[RenderPolyline]:
        transform = self.viewport.transform()
        out: List[RenderPolyline] = []
        for item in self.visible_items():
            out.append(
                RenderPolyline(
                    id=item.id,
                    layer=item.layer,
                    points=[transform.to_device(p) for p in item.points],
                    style=self.styles.effective_line_style(item),
                    selected=item.id == self.selection.item_id,
                )
            )
        return out

    def stats(self) -> Dict[str, Any]:
        visible = self.visible_items()
        bounds = self.content_bounds(visible_only=False)
        return {
            "items": len(self.items),
            "visibleItems": len(visible),
            "points": sum(len(item.points) for item in self.items),
            "layers": len(self.styles),
            "hiddenLayers": sorted(self.hidden_layers),
            "length": sum(polyline_length(item.points) for item in self.items),
            "bounds": None if bounds is None else bounds.asdict(),
        }
