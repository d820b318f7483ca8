"""ezdxf bridge producing the raw parser shape consumed by ``EditSession.load_parsed``.

Output::

    {
        "entities":  [{"type", "layer", "handle", "lineTypeName", ...}, ...],
        "polylines": [{"vertices": [[x, y], ...], "layer", "rgb", "entityIndex"}, ...],
        "layers":    [{"name", "color", "lineTypeName", "visible"}, ...],
        "bbox":      {"min": {"x", "y"}, "max": {"x", "y"}} | None,
    }

Curve entities are flattened with :mod:`ezdxf.path`; filled quads, dimensions,
text, points and block references are reported as entities only.
"""
from __future__ import annotations

import io
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import ezdxf
from ezdxf import bbox as ezbbox
from ezdxf import path as ezpath
from ezdxf.colors import aci2rgb

from .normalize import FLATTENED_TYPES, rgb_to_hex

logger = logging.getLogger(__name__)

MIN_FLATTEN_DISTANCE = 1e-6

# ACI 0 = BYBLOCK, 7 = foreground (black/white), 256 = BYLAYER
_INHERITED_ACI = {0, 7, 256}


class DrawingLoadError(ValueError):
    """The file could not be read as a DXF drawing."""


def _xy(vec: Any) -> Dict[str, float]:
    return {"x": float(vec[0]), "y": float(vec[1])}


def _aci_rgb(index: Any) -> Optional[Tuple[int, int, int]]:
    try:
        index = abs(int(index))
    except (TypeError, ValueError):
        return None
    if index in _INHERITED_ACI or not 1 <= index <= 255:
        return None
    rgb = aci2rgb(index)
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


def _entity_rgb(entity: Any) -> Optional[Tuple[int, int, int]]:
    if entity.dxf.hasattr("true_color"):
        rgb = entity.rgb
        if rgb is not None:
            return (int(rgb[0]), int(rgb[1]), int(rgb[2]))
    return _aci_rgb(entity.dxf.get("color", 256))


def _entity_record(entity: Any) -> Dict[str, Any]:
    kind = entity.dxftype()
    dxf = entity.dxf
    record: Dict[str, Any] = {
        "type": kind,
        "layer": dxf.get("layer", "0"),
        "handle": dxf.get("handle", ""),
        "lineTypeName": dxf.get("linetype", "BYLAYER"),
        "colorNumber": int(dxf.get("color", 256)),
    }
    rgb = _entity_rgb(entity)
    if rgb is not None:
        record["rgb"] = list(rgb)

    if kind == "LINE":
        record["start"] = _xy(dxf.start)
        record["end"] = _xy(dxf.end)
    elif kind in ("ARC", "CIRCLE"):
        record["center"] = _xy(dxf.center)
        record["radius"] = float(dxf.radius)
        if kind == "ARC":
            record["startAngle"] = float(dxf.start_angle)
            record["endAngle"] = float(dxf.end_angle)
    elif kind == "ELLIPSE":
        record["center"] = _xy(dxf.center)
        record["majorAxis"] = _xy(dxf.major_axis)
        record["ratio"] = float(dxf.ratio)
    elif kind == "LWPOLYLINE":
        record["vertices"] = [{"x": float(x), "y": float(y)} for x, y in entity.get_points("xy")]
        record["closed"] = bool(entity.closed)
    elif kind == "POLYLINE":
        record["vertices"] = [_xy(v.dxf.location) for v in entity.vertices]
        record["closed"] = bool(entity.is_closed)
    elif kind == "SPLINE":
        record["degree"] = int(dxf.get("degree", 3))
    elif kind in ("SOLID", "TRACE"):
        # SOLID/TRACE store their fourth corner before the third
        vtx2 = dxf.get("vtx2")
        vtx3 = dxf.get("vtx3", vtx2)
        record["corners"] = [_xy(dxf.vtx0), _xy(dxf.vtx1), _xy(vtx3), _xy(vtx2)]
    elif kind == "3DFACE":
        vtx2 = dxf.get("vtx2")
        vtx3 = dxf.get("vtx3", vtx2)
        record["corners"] = [_xy(dxf.vtx0), _xy(dxf.vtx1), _xy(vtx2), _xy(vtx3)]
    elif kind == "DIMENSION":
        start = dxf.get("defpoint2")
        end = dxf.get("defpoint3")
        if start is not None and end is not None:
            record["measureStart"] = _xy(start)
            record["measureEnd"] = _xy(end)
        measurement = dxf.get("actual_measurement")
        if measurement is not None:
            record["measurement"] = float(measurement)
    elif kind == "TEXT":
        record["insert"] = _xy(dxf.insert)
        record["text"] = dxf.get("text", "")
        record["height"] = float(dxf.get("height", 2.5))
        record["rotation"] = float(dxf.get("rotation", 0.0))
    elif kind == "MTEXT":
        record["insert"] = _xy(dxf.insert)
        record["text"] = entity.plain_text()
        record["height"] = float(dxf.get("char_height", 2.5))
        record["rotation"] = float(dxf.get("rotation", 0.0))
    elif kind == "POINT":
        record["position"] = _xy(dxf.location)
    elif kind == "INSERT":
        record["insert"] = _xy(dxf.insert)
        record["block"] = dxf.get("name", "")
        record["rotation"] = float(dxf.get("rotation", 0.0))
    return record


def _flatten(entity: Any, distance: float) -> List[List[float]]:
    try:
        entity_path = ezpath.make_path(entity)
        vertices = [[float(v.x), float(v.y)] for v in entity_path.flattening(distance=distance)]
    except (TypeError, ValueError) as exc:
        logger.warning("Could not flatten %s #%s: %s", entity.dxftype(), entity.dxf.get("handle", "?"), exc)
        return []
    return vertices


def _layer_records(doc: Any) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for layer in doc.layers:
        rgb = layer.rgb if layer.dxf.hasattr("true_color") else None
        color = rgb_to_hex(list(rgb)) if rgb is not None else rgb_to_hex(_aci_rgb(layer.color))
        records.append(
            {
                "name": layer.dxf.name,
                "color": color,
                "lineTypeName": layer.dxf.get("linetype", "Continuous"),
                "visible": not (layer.is_off() or layer.is_frozen()),
            }
        )
    return records


def _bbox(msp: Any) -> Optional[Dict[str, Dict[str, float]]]:
    extents = ezbbox.extents(msp)
    if not extents.has_data:
        return None
    return {"min": _xy(extents.extmin), "max": _xy(extents.extmax)}


def parse_document(doc: Any, flatten_distance: float = 0.01) -> Dict[str, Any]:
    """Project an ezdxf document into the raw parser shape."""
    distance = max(float(flatten_distance), MIN_FLATTEN_DISTANCE)
    msp = doc.modelspace()
    entities: List[Dict[str, Any]] = []
    polylines: List[Dict[str, Any]] = []
    for entity in msp:
        index = len(entities)
        record = _entity_record(entity)
        entities.append(record)
        if record["type"] not in FLATTENED_TYPES:
            continue
        vertices = _flatten(entity, distance)
        if len(vertices) < 2:
            continue
        polyline: Dict[str, Any] = {
            "vertices": vertices,
            "layer": record["layer"],
            "entityIndex": index,
        }
        if "rgb" in record:
            polyline["rgb"] = record["rgb"]
        polylines.append(polyline)
    logger.debug("Parsed %d entities into %d polylines", len(entities), len(polylines))
    return {
        "entities": entities,
        "polylines": polylines,
        "layers": _layer_records(doc),
        "bbox": _bbox(msp),
    }


def read_dxf(path: os.PathLike | str, flatten_distance: float = 0.01) -> Dict[str, Any]:
    try:
        doc = ezdxf.readfile(os.fspath(path))
    except OSError as exc:
        raise DrawingLoadError(f"Cannot read DXF file {path}: {exc}") from exc
    except ezdxf.DXFStructureError as exc:
        raise DrawingLoadError(f"Invalid DXF structure in {path}: {exc}") from exc
    logger.info("Read DXF %s (%s)", path, doc.dxfversion)
    return parse_document(doc, flatten_distance)


def parse_dxf_text(text: str, flatten_distance: float = 0.01) -> Dict[str, Any]:
    try:
        doc = ezdxf.read(io.StringIO(text))
    except ezdxf.DXFStructureError as exc:
        raise DrawingLoadError(f"Invalid DXF structure: {exc}") from exc
    return parse_document(doc, flatten_distance)
