"""
FastAPI application for the NF-e Batch Reconciler.

Provides REST API endpoints for:
- Health check
- Reconciling a JSON batch message
- Reconciling uploaded XML files

Reconciliation responses are streamed as newline-delimited JSON: zero or
more progress messages followed by one completed or failed message.
"""

from collections.abc import Iterator
from typing import Any, List, Optional

from fastapi import Body, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from .config import logger, API_HOST, API_PORT, MAX_UPLOAD_SIZE_MB
from .schemas import BatchRequest, ReportLog
from .worker import ReconciliationWorker


# ============================================================================
# FastAPI App Configuration
# ============================================================================

app = FastAPI(
    title="NF-e Batch Reconciler API",
    description="""
    NF-e Batch Reconciler API.

    Reconciles batches of NF-e XML documents and reports divergent amounts,
    missing or incomplete authorization protocols, duplicate filings and
    gaps in the invoice-number sequence.

    ## Features

    - **Reconcile JSON**: Submit `{documents: [{name, content}]}` directly
    - **Reconcile Files**: Upload XML files as multipart form data
    - **Streaming Progress**: Responses are NDJSON message streams
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

NDJSON_MEDIA_TYPE = "application/x-ndjson"


# ============================================================================
# Response Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


def stream_reconciliation(payload: Any, log: Optional[ReportLog] = None) -> Iterator[str]:
    """Run a batch on a background worker and yield its messages as NDJSON lines."""
    worker = ReconciliationWorker()
    worker.post(payload, log)
    try:
        for message in worker.messages():
            yield message.model_dump_json(by_alias=True) + "\n"
    finally:
        # Client gone or stream done; the engine stops at the next document
        worker.terminate()


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    The upload surface pings this before sending a batch.
    """
    from . import __version__
    return HealthResponse(status="ok", version=__version__)


@app.post(
    "/reconcile",
    tags=["Reconciliation"],
    summary="Reconcile a JSON batch",
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": BatchRequest.model_json_schema()}},
        }
    },
)
async def reconcile_json(payload: Any = Body(...)) -> StreamingResponse:
    """
    Reconcile a batch message of the form `{documents: [{name, content}]}`.

    A malformed message is answered with a single `failed` message rather
    than an HTTP error, matching the worker protocol.
    """
    count = len(payload.get("documents") or []) if isinstance(payload, dict) else 0
    logger.info(f"Received reconciliation request for {count} documents")
    return StreamingResponse(stream_reconciliation(payload), media_type=NDJSON_MEDIA_TYPE)


@app.post(
    "/reconcile-files",
    tags=["Reconciliation"],
    summary="Reconcile uploaded XML files",
)
async def reconcile_files(
    files: List[UploadFile] = File(..., description="NF-e XML files to reconcile")
) -> StreamingResponse:
    """
    Reconcile uploaded XML files.

    Files that are not `.xml` or exceed the size limit are skipped and
    reported in the error log of the final report.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    max_size = MAX_UPLOAD_SIZE_MB * 1024 * 1024
    documents: list[dict[str, str]] = []
    log = ReportLog()

    for file in files:
        filename = file.filename or "<unnamed>"
        if not filename.lower().endswith(".xml"):
            log.error(f"File {filename}: Not an XML file")
            continue

        content = await file.read()
        if len(content) > max_size:
            log.error(f"File {filename}: File too large (max {MAX_UPLOAD_SIZE_MB}MB)")
            continue

        documents.append({"name": filename, "content": content.decode("utf-8", errors="replace")})

    if not documents:
        raise HTTPException(
            status_code=422,
            detail=f"No XML documents to reconcile. Errors: {'; '.join(log.errors)}"
        )

    logger.info(f"Received {len(documents)} XML files ({len(log.errors)} rejected)")
    return StreamingResponse(
        stream_reconciliation({"documents": documents}, log),
        media_type=NDJSON_MEDIA_TYPE,
    )


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# ============================================================================
# Main Entry Point
# ============================================================================

def run_server():
    """Run the API server using uvicorn."""
    import uvicorn
    logger.info(f"NF-e Batch Reconciler API starting on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    run_server()
