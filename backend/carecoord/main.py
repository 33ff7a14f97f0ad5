import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
#Handles Cross-Origin Resource Sharing
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .config import settings
#SQLAlchemy database engine and declarative base
from .database import engine, Base
from .errors import ServiceError
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
#Models - imported for table creation
from . import models  # noqa: F401
#Routers - one per resource
from .routers import (
    auth_router, users_router, admin_router, patients_router, vhv_router,
    tasks_router, intakes_router, reviews_router, emergency_router,
    patient_portal_router, dashboards_router,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Automatically create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(
    title="CareCoord API",
    description="Care coordination for doctors, village health volunteers and patients",
    version="1.0.0"
)

# Configure CORS(Cross-Origin Resource Sharing)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def describe_validation_error(exc: RequestValidationError) -> str:
    """First problem of a rejected request, named by the field the client sent."""
    error = exc.errors()[0]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "request body"
    if error.get("type") == "missing":
        return f"{field} is required"
    if error.get("type") == "json_invalid":
        return "Invalid JSON body"
    message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{field}: {message}"


#domain errors raised by the services
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return error_response(exc.status_code, exc.message)

#keeps HTTPException raised by the auth dependencies in the {"error": ...} envelope
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, describe_validation_error(exc))

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(500, str(exc.__cause__ or exc))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, str(exc) or exc.__class__.__name__)


# Include routers
app.include_router(auth_router)  #authentication endpoints
app.include_router(users_router)
app.include_router(admin_router)
app.include_router(patients_router)
app.include_router(vhv_router)
app.include_router(tasks_router)
app.include_router(intakes_router)
app.include_router(reviews_router)
app.include_router(emergency_router)
app.include_router(patient_portal_router)
app.include_router(dashboards_router)

@app.get("/")
async def root():
    return {"message": "CareCoord API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
