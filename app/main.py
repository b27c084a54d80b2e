# Main application file



import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.rate_limiter import limiter
from app.core.config import settings
from app.core.errors import AppError, ConflictError
from app.routers import (
    clients,
    sales,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("app")


# APP INIT

app = FastAPI(
    title="Client & Sales Ledger API",
    description="Clients, sales and spreadsheet client imports for small sales teams",
    version="1.0.0",
    debug=settings.DEBUG,
)



# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# DOMAIN ERRORS

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    content = {"detail": exc.message}

    if isinstance(exc, ConflictError):
        content["field"] = exc.field

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=content)


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(clients.router)
app.include_router(sales.router)



# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "Client & Sales Ledger API is running"}
