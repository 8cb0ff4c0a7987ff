import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routers import notes, ops, tasks
from smart_tasks.errors import (
    ExtractionFailed,
    MissingRequiredField,
    ModelUnavailable,
    NoTasksFound,
    NotFound,
    TaskManagerError,
    ValidationError,
)

# Logging configuration
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Smart Tasks")

app.include_router(notes.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(ops.router)


def _status_for(error: TaskManagerError) -> int:
    if isinstance(error, (ValidationError, MissingRequiredField)):
        return 400
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, ModelUnavailable):
        return 503
    if isinstance(error, ExtractionFailed):
        return 503 if isinstance(error.__cause__, ModelUnavailable) else 422
    if isinstance(error, NoTasksFound):
        return 422
    return 500


@app.exception_handler(TaskManagerError)
async def task_manager_error_handler(request: Request, exc: TaskManagerError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = {"success": False, "error": exc.message}
    details = getattr(exc, "details", None)
    if details:
        body["details"] = details
    return JSONResponse(status_code=status, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    message = details[0]["msg"].removeprefix("Value error, ") if details else "Validation error"
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message, "details": details},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "4000")))
