import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from task_service.app.routes import tasks
from task_service.app.middleware.access_log import AccessLogMiddleware
from task_service.config import Settings
from task_service.infra.db.database import create_schema, make_engine, make_sessionmaker
from task_service.infra.db.task_repo_memory import InMemoryTaskRepo
from task_service.infra.db.task_repo_sql import SQLTaskRepo
from task_service.observability.logging import setup_logging
from task_service.services.task_service import TaskService

logger = logging.getLogger("tasks.system")


async def _invalid_payload(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(
        "request.invalid",
        extra={"category": "http", "event": "request.invalid", "path": request.url.path, "errors": len(exc.errors())},
    )
    return JSONResponse(status_code=400, content={"detail": "Invalid request payload"})


def create_app(settings: Optional[Settings] = None, repo=None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_dir)
    logger.info("system.start", extra={"category": "system", "event": "system.start"})

    # --- Persistence wiring ---
    engine = None
    if repo is None:
        if settings.task_repo == "memory":
            repo = InMemoryTaskRepo()
        else:
            engine = make_engine(settings)
            repo = SQLTaskRepo(make_sessionmaker(engine))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if engine is None:
            yield
            return
        # Create tables on startup
        await create_schema(engine)
        logger.info(
            "db.ready",
            extra={"category": "system", "event": "db.ready", "db": engine.url.render_as_string(hide_password=True)},
        )
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(title="Task Service", version="1.0.0", lifespan=lifespan)
    app.add_middleware(AccessLogMiddleware)
    app.add_exception_handler(RequestValidationError, _invalid_payload)

    app.state.task_service = TaskService(repo)
    app.include_router(tasks.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    # log_config=None keeps the JSON handlers installed by setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


app = create_app()
