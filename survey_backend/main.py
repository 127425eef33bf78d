import logging
import socket
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config, errors
from .api.endpoints import response as response_endpoints
from .api.endpoints import survey as survey_endpoints
from .database import create_db_and_tables, engine
from .logging_setup import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Application starting up...")
    if config.AUTO_CREATE_TABLES:
        await create_db_and_tables()
    yield
    logger.info("Application shutting down...")
    await engine.dispose()


app = FastAPI(title="Survey Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(survey_endpoints.router, prefix="/api/surveys", tags=["surveys"])
app.include_router(
    response_endpoints.router, prefix="/api/responses", tags=["responses"]
)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are rejected with 400 before any storage is touched
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": errors.ValidationError.error,
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(errors.SurveyServiceError)
async def survey_service_error_handler(request: Request, exc: errors.SurveyServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.get("/")
async def read_root():
    return {"message": "Welcome to the survey backend!"}


@app.get("/api/test")
async def api_test():
    logger.info("Test route accessed")
    return {
        "message": "API server is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "user": config.SERVICE_USERNAME,
    }


def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def find_available_port(start_port: int, attempts: int = config.PORT_SEARCH_LIMIT) -> int:
    for port in range(start_port, start_port + attempts + 1):
        if is_port_available(port):
            return port
        logger.info("Port %d is not available, trying next port...", port)
    raise RuntimeError(f"Could not find an available port after {attempts} attempts")


def run() -> None:
    configure_logging()
    port = find_available_port(config.PORT)
    logger.info("API available at http://localhost:%d/api/test", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_config=None)


if __name__ == "__main__":
    run()
