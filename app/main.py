import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Header as HeaderParam, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.config import Settings, get_settings
from app.errors import ObjectStoreError
from app.models import ErrorResponse, Header
from app.repository import ObjectRepository, ObjectStore
from app.service import ObjectService

log = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure the ``app`` logger: stderr always, plus a file when log_file is set."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger("app")
    root.setLevel(level)
    root.handlers.clear()
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root.addHandler(sh)
    if settings.log_file.strip():
        try:
            fh = logging.FileHandler(settings.log_file, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            root.addHandler(fh)
            root.info("Logging to file %s", settings.log_file)
        except OSError as e:
            root.warning("Could not open log file %s: %s", settings.log_file, e)


def create_app(settings: Settings | None = None, store: ObjectStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    repository = store
    if repository is None:
        repository = ObjectRepository(settings.database_path)
    service = ObjectService(repository, settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if isinstance(repository, ObjectRepository):
            Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
            repository.init()
        log.info("Startup complete (%s)", settings.app_env)
        yield
        log.info("Shutdown")

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    def error_response(status_code: int, code: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": code})

    @app.exception_handler(ObjectStoreError)
    async def object_store_exception_handler(_: Request, exc: ObjectStoreError):
        if exc.status_code >= 500:
            log.error("Request failed: %s (%s)", exc.code, exc.message, exc_info=exc)
        return error_response(exc.status_code, exc.code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        return error_response(400, "bad_request")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException):
        code_map = {
            400: "bad_request",
            401: "unauthorized",
            403: "forbidden",
            404: "not_found",
            405: "method_not_allowed",
        }
        return error_response(exc.status_code, code_map.get(exc.status_code, "error"))

    @app.exception_handler(Exception)
    async def generic_exception_handler(_: Request, exc: Exception):
        log.exception("Unhandled exception: %s", exc)
        return error_response(500, "internal_error")

    @app.get("/")
    def root() -> dict:
        return {"status": "ok", "service": settings.app_name}

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "environment": settings.app_env}

    @app.post("/u", response_model=Header, response_model_by_alias=True)
    async def upload(
        request: Request,
        filename: str = HeaderParam(...),
        authorization: str | None = HeaderParam(None),
        content_type: str | None = HeaderParam(None),
    ):
        payload = await request.body()
        return await run_in_threadpool(
            service.put,
            payload,
            filename=filename,
            content_type=content_type,
            auth_token=authorization,
        )

    @app.get("/{object_id}/d/{delete_key}", response_model=ErrorResponse)
    def delete_object(object_id: str, delete_key: str):
        service.delete(object_id, delete_key)
        return ErrorResponse(error="")

    @app.get("/{object_id}")
    def get_object(object_id: str):
        stored = service.get(object_id)
        return Response(
            content=stored.data, headers={"content-type": stored.header.content_type}
        )

    return app


app = create_app()
