"""
FastAPI backend for the corrsurface webapp.

Serves a browser page that plots FQ/AFQ correlation surfaces over the
(beta, disorder) plane, the JSON dataset behind it, and API routes that pivot
the dataset into surface grids and Plotly figures for a toggle selection.
A WebSocket channel pushes recomputed surfaces as the selection changes.
"""

from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, ORJSONResponse
from fastapi.staticfiles import StaticFiles

from api.app_config import get_app_config
from api.shared.logger import get_logger, setup_logging

setup_logging(get_app_config().log_level)
logger = get_logger(__name__)

from api.correlations import router as correlations_router
from api.system import log_error
from api.system import router as system_router
from realtime import ws_manager

# Create FastAPI app
app = FastAPI(
    title="corrsurface API",
    description="Correlation surfaces over beta and disorder for FQ/AFQ order parameters",
    version="1.0.0",
    default_response_class=ORJSONResponse,
)


# ============= Exception Handlers for Error Logging =============


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Log HTTP exceptions and return JSON response."""
    # Only log 5xx errors (server errors)
    if exc.status_code >= 500:
        log_error(
            endpoint=str(request.url.path),
            message=str(exc.detail),
            level="error",
            details=f"Status code: {exc.status_code}",
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected exceptions and return JSON response."""
    log_error(
        endpoint=str(request.url.path),
        message=str(exc),
        level="critical",
        details=f"Unhandled exception: {type(exc).__name__}",
        exc=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# The page may be opened from another origin during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include API routes
app.include_router(system_router, prefix="/api", tags=["system"])
app.include_router(correlations_router, prefix="/api")


# ============= Startup Events =============


@app.on_event("startup")
async def startup_event():
    """Log the effective configuration."""
    config = get_app_config()
    logger.info("corrsurface webapp starting...")
    logger.info("Dataset source: %s", config.data_source)
    logger.info("Public folder: %s", config.public_dir)
    if not config.discard_stale:
        logger.info("Stale surface discarding disabled: last fetch to resolve wins")


# ============= WebSocket Endpoints =============


@app.websocket("/ws/correlations")
async def correlations_websocket_endpoint(websocket: WebSocket, client_id: str = None):
    """
    WebSocket endpoint for live correlation surfaces.

    On connect the server sends ``connected`` followed by a
    ``surface_updated`` message for the default selection.

    Message format (JSON):
    {
        "type": "select" | "refresh" | "ping",
        "data": {"range": ..., "dataset": ..., "order_parameter": ...}
    }
    """
    await ws_manager.connect(websocket, client_id)

    try:
        while True:
            message_text = await websocket.receive_text()
            response = await ws_manager.handle_message(websocket, message_text)
            if response:
                await ws_manager.send_to_connection(websocket, response)

    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        await ws_manager.disconnect(websocket)


@app.get("/api/ws/stats")
async def get_websocket_stats():
    """Get WebSocket connection statistics."""
    return {
        "total_connections": ws_manager.get_connection_count(),
    }


# Serve the page and the bundled dataset from the public folder
public_path = get_app_config().public_dir

if public_path.exists():
    app.mount("/public", StaticFiles(directory=str(public_path)), name="public")


@app.get("/")
async def serve_index():
    """Serve the surface plot page"""
    index_file = Path(public_path) / "index.html"
    if index_file.exists():
        return FileResponse(str(index_file))
    raise HTTPException(status_code=404, detail="index.html not found")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="corrsurface backend server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_app_config().port,
        help="Port to run the server on (default: 8000 or CORRSURFACE_PORT env var)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=get_app_config().host,
        help="Host to bind to (default: 127.0.0.1 or CORRSURFACE_HOST env var)",
    )
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable auto-reload",
    )
    args = parser.parse_args()

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
