import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from issue_reporter import config
from issue_reporter.database import IssueStore, build_store
from issue_reporter.middleware.timing import timing_middleware
from issue_reporter.routes import issues_router, uploads_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: upload directory and store (creates tables for the SQL store)
    os.makedirs(app.state.upload_dir, exist_ok=True)
    app.state.store.open()

    yield

    # Shutdown: release the store
    app.state.store.close()


def create_app(store: Optional[IssueStore] = None, upload_dir: Optional[str] = None) -> FastAPI:
    """Build the application around one store constructed at start-up."""
    app = FastAPI(title="Issue Reporter", lifespan=lifespan)

    app.state.store = store if store is not None else build_store()
    app.state.upload_dir = upload_dir or config.UPLOAD_DIR

    app.middleware("http")(timing_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(issues_router)
    app.include_router(uploads_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info(
        "Issue reporter app created",
        extra={"store": type(app.state.store).__name__, "upload_dir": app.state.upload_dir},
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
