from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, Field

from ..adapters import documents as documents_adapter


class DocumentCreate(BaseModel):
    name: str = Field(default="Untitled", description="Document name")
    document: Optional[Any] = Field(default=None, description="Canonical JSON or any polyline list shape")
    dxf: Optional[str] = Field(default=None, description="DXF source text")


class DocumentResponse(BaseModel):
    id: str
    name: str
    created_at: str
    updated_at: str
    polylines: List[Dict[str, Any]]
    layers: Dict[str, Any]
    view: Dict[str, float]
    selection: Dict[str, Any]
    stats: Dict[str, Any]


class CommandRequest(BaseModel):
    command: str


class CommandResponse(BaseModel):
    status: str
    message: str
    document: DocumentResponse


class SelectRequest(BaseModel):
    itemId: str
    pointIndex: Optional[int] = Field(default=None, ge=0)


class NormalizeRequest(BaseModel):
    document: Any = None


router = APIRouter(tags=["documents"])

_NOT_FOUND = "Document not found"


@router.get("/documents", response_model=List[DocumentResponse])
async def list_documents() -> List[DocumentResponse]:
    return [DocumentResponse(**item) for item in documents_adapter.list_documents()]


@router.post("/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(body: DocumentCreate) -> DocumentResponse:
    try:
        item = documents_adapter.create_document(body.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DocumentResponse(**item)


@router.get("/documents/{doc_id}", response_model=DocumentResponse)
async def get_document(doc_id: str) -> DocumentResponse:
    try:
        data = documents_adapter.get_document(doc_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from exc
    return DocumentResponse(**data)


@router.delete("/documents/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(doc_id: str) -> None:
    try:
        documents_adapter.delete_document(doc_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from exc


@router.post("/documents/{doc_id}/commands", response_model=CommandResponse)
async def run_command(doc_id: str, body: CommandRequest) -> CommandResponse:
    try:
        return CommandResponse(**documents_adapter.run_command(doc_id, body.command))
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from exc


@router.post("/documents/{doc_id}/select")
async def select(doc_id: str, body: SelectRequest) -> Dict[str, Any]:
    try:
        return documents_adapter.select(doc_id, body.itemId, body.pointIndex)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/documents/{doc_id}/export/{fmt}")
async def export_document(doc_id: str, fmt: str) -> Response:
    try:
        payload = documents_adapter.export(doc_id, fmt)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    filename = documents_adapter.export_filename(fmt)
    return Response(
        content=payload,
        media_type=documents_adapter.MEDIA_TYPES[fmt.lower()],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/normalize")
async def normalize(body: NormalizeRequest) -> Dict[str, Any]:
    return documents_adapter.normalize(body.document)
