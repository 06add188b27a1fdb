import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_fastapi_instrumentator import Instrumentator

from glycorisk.core.config import get_settings
from glycorisk.prediction.api import get_notifier, router as prediction_router
from glycorisk.prediction.config import get_prediction_settings
from glycorisk.prediction.errors import FieldProblem, PredictionError, ValidationError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up glycorisk backend...")
    yield
    logger.info("Shutting down; draining outcome emails")
    if get_notifier.cache_info().currsize:
        get_notifier().shutdown(wait=True)


HTTP_ERROR_KINDS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
}

# FastAPI request-validation types with a clearer name in our error bodies
REQUEST_PROBLEMS = {
    "missing": "missing",
    "json_invalid": "not_json",
    "dict_type": "not_object",
}


async def prediction_error_handler(request: Request, exc: PredictionError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def _request_problem(error: dict) -> FieldProblem:
    loc = [str(part) for part in error.get("loc", ())]
    problem = REQUEST_PROBLEMS.get(error.get("type", ""), error.get("type", "invalid"))
    if problem == "not_json" or len(loc) < 2:
        return FieldProblem(field=loc[0] if loc else "body", problem=problem)
    return FieldProblem(field=".".join(loc[1:]), problem=problem)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's own request validation failures in the prediction error shape."""
    error = ValidationError([_request_problem(e) for e in exc.errors()])
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": HTTP_ERROR_KINDS.get(exc.status_code, "HTTPError"), "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for anything the pipeline did not classify."""
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"kind": "InternalError", "message": "Internal server error"},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)
    app.add_exception_handler(PredictionError, prediction_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.include_router(prediction_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    if get_prediction_settings().METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()
