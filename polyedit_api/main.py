from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from .adapters import documents as documents_adapter
from .routers import documents as documents_router

app = FastAPI(title="polyedit API", version="0.1.0", description="Polyline document editing service")

app.include_router(documents_router.router)


@app.get("/")
async def index() -> Dict[str, Any]:
    return {
        "name": "polyedit-api",
        "version": app.version,
        "routes": [
            {"path": "/documents", "methods": ["GET", "POST"]},
            {"path": "/documents/{id}", "methods": ["GET", "DELETE"]},
            {"path": "/documents/{id}/commands", "methods": ["POST"]},
            {"path": "/documents/{id}/select", "methods": ["POST"]},
            {"path": "/documents/{id}/export/{fmt}", "methods": ["GET"]},
            {"path": "/normalize", "methods": ["POST"]},
        ],
        "document_count": len(documents_adapter.list_documents()),
    }
