"""In-memory document store backing the document routes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from polyedit_core.commands import EXPORT_NAMES, CommandInterpreter
from polyedit_core.dxf_reader import parse_dxf_text
from polyedit_core.model import IdAllocator
from polyedit_core.normalize import normalize_document
from polyedit_core.serialize import canonical_document
from polyedit_core.session import EditSession

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "json": "application/json",
    "dxf": "application/dxf",
    "svg": "image/svg+xml",
}


@dataclass
class Document:
    """Stored editing session with metadata."""

    id: str
    name: str
    session: EditSession
    created_at: datetime
    updated_at: datetime
    interpreter: CommandInterpreter = field(init=False)

    def __post_init__(self) -> None:
        self.interpreter = CommandInterpreter(self.session)


class DocumentStore:
    """Simple store keyed by uuid."""

    def __init__(self) -> None:
        self._items: Dict[str, Document] = {}

    def create(self, name: str, session: EditSession) -> Document:
        doc_id = str(uuid4())
        now = datetime.now(timezone.utc)
        doc = Document(id=doc_id, name=name, session=session, created_at=now, updated_at=now)
        self._items[doc_id] = doc
        return doc

    def list(self) -> List[Document]:
        return list(self._items.values())

    def get(self, doc_id: str) -> Optional[Document]:
        return self._items.get(doc_id)

    def require(self, doc_id: str) -> Document:
        doc = self._items.get(doc_id)
        if doc is None:
            raise KeyError(doc_id)
        return doc

    def delete(self, doc_id: str) -> bool:
        return self._items.pop(doc_id, None) is not None

    def clear(self) -> None:
        self._items.clear()


_store = DocumentStore()


def get_store() -> DocumentStore:
    return _store


def _selection(session: EditSession) -> Dict[str, Any]:
    sel = session.selection
    return {"itemId": sel.item_id, "pointIndex": sel.point_index, "entityIndex": sel.entity_index}


def serialize_document(doc: Document) -> Dict[str, Any]:
    session = doc.session
    data = canonical_document(session.items, session.styles, session.visible_layers())
    return {
        "id": doc.id,
        "name": doc.name,
        "created_at": doc.created_at.isoformat(),
        "updated_at": doc.updated_at.isoformat(),
        "polylines": data["polylines"],
        "layers": data["layers"],
        "view": session.viewport.bounds.asdict(),
        "selection": _selection(session),
        "stats": session.stats(),
    }


def _session_from_payload(document: Any, dxf: Optional[str]) -> EditSession:
    session = EditSession()
    if dxf:
        if session.load_parsed(parse_dxf_text(dxf, session.config.flatten_distance)) == 0:
            raise ValueError("DXF contains no usable polylines")
        return session
    if document is None:
        return session
    if session.apply_document(document) == 0:
        raise ValueError("Document contains no usable polylines")
    session.fit_to_content()
    return session


def create_document(payload: Dict[str, Any]) -> Dict[str, Any]:
    session = _session_from_payload(payload.get("document"), payload.get("dxf"))
    doc = _store.create(name=payload.get("name") or "Untitled", session=session)
    logger.info("Created document %s with %d polyline(s)", doc.id, len(session.items))
    return serialize_document(doc)


def list_documents() -> List[Dict[str, Any]]:
    return [serialize_document(doc) for doc in _store.list()]


def get_document(doc_id: str) -> Dict[str, Any]:
    return serialize_document(_store.require(doc_id))


def delete_document(doc_id: str) -> None:
    if not _store.delete(doc_id):
        raise KeyError(doc_id)


def run_command(doc_id: str, command: str) -> Dict[str, Any]:
    doc = _store.require(doc_id)
    result = doc.interpreter.execute(command)
    if result:
        doc.updated_at = datetime.now(timezone.utc)
    return {"status": result.status, "message": result.message, "document": serialize_document(doc)}


def select(doc_id: str, item_id: str, point_index: Optional[int] = None) -> Dict[str, Any]:
    doc = _store.require(doc_id)
    session = doc.session
    if point_index is None:
        ok = session.select_item(item_id)
    else:
        ok = session.select_point(item_id, point_index)
    if not ok:
        raise ValueError(f"Nothing to select at {item_id}" + ("" if point_index is None else f"[{point_index}]"))
    return _selection(session)


def export(doc_id: str, fmt: str) -> str:
    doc = _store.require(doc_id)
    fmt = fmt.lower()
    if fmt not in EXPORT_NAMES:
        raise ValueError(f"Unsupported export format '{fmt}'")
    return doc.interpreter.render_export(fmt)


def normalize(document: Any) -> Dict[str, Any]:
    items = normalize_document(document, IdAllocator())
    return {"polylines": [item.asdict() for item in items], "count": len(items)}


def export_filename(fmt: str) -> str:
    return EXPORT_NAMES[fmt.lower()]
