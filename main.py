import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import PhoneVerificationError
from app.core.logging_config import setup_logging
from app.api.endpoints import phone_verification, profiles
from app.services.sms_gateway import build_delivery_gateway

setup_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    logger.info("Starting up NRIChristianMatrimony API...")
    init_db()

    app.state.delivery_gateway = build_delivery_gateway(settings)
    if app.state.delivery_gateway.is_configured():
        logger.info(f"Phone verification enabled (mode: {settings.SMS_DELIVERY_MODE})")
    else:
        logger.warning("Phone verification is not configured; send-code requests will fail")

    yield

    logger.info("Shutting down NRIChristianMatrimony API...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Matrimony profiles with phone number verification",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report the first validation error as `{message, field}` with status 400."""
    errors = exc.errors()
    first = errors[0] if errors else {"msg": "Invalid request", "loc": ()}

    message = first.get("msg", "Invalid request")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))

    content = {"message": message}
    if field:
        content["field"] = field
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


@app.exception_handler(PhoneVerificationError)
async def phone_verification_exception_handler(request: Request, exc: PhoneVerificationError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"}
    )


app.include_router(phone_verification.router, prefix="/api")
app.include_router(profiles.router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
