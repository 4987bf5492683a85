"""
FastAPI app for the liftmatch engine.

HTTP layer over the application use cases. The snapshot source and the
notification sink are injected; by default both are in-memory and empty.
"""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from liftmatch.api.router import router
from liftmatch.application.ports import NotificationSink
from liftmatch.infrastructure.memory_store import InMemoryNotificationSink, InMemorySnapshot
from liftmatch.logging_setup import setup_logging

DEFAULT_ORIGINS = ["http://localhost:5000", "http://localhost:5173"]


def _cors_origins() -> list[str]:
    raw = os.environ.get("LIFTMATCH_CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_ORIGINS


def create_app(snapshot=None, sink: NotificationSink | None = None) -> FastAPI:
    """snapshot must implement SnapshotSource and DriverDirectory."""
    app = FastAPI(
        title="liftmatch API",
        description="Matching and route planning for trade-plate drivers",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.snapshot = snapshot if snapshot is not None else InMemorySnapshot()
    app.state.sink = sink if sink is not None else InMemoryNotificationSink()
    app.include_router(router)

    @app.get("/")
    def root():
        """Endpoint raíz"""
        return {"message": "liftmatch API", "status": "ok"}

    return app


app = create_app()


# Bloque para ejecutar con uvicorn
if __name__ == "__main__":
    import uvicorn

    setup_logging(os.environ.get("LOG_LEVEL", "INFO"), json_output=os.environ.get("LOG_JSON") == "1")
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
