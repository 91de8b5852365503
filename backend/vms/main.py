from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from vms.api.v1 import auth, setup, visitor, resident, guard, notifications, superadmin, webhooks
from vms.core.config import settings
from vms.core.database import SessionLocal, get_client, init_db, reset_client
from vms.services.retention_service import RetentionService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gate VMS API",
    description="Visitor management for gated properties",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- ERROR ENVELOPE ----------
def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return error_response(400, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = str(first.get("msg", "Invalid value")).replace("Value error, ", "")
    return error_response(400, f"{field}: {message}" if field else message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, "Internal server error")


# ---------- LIFECYCLE ----------
@app.on_event("startup")
async def startup_event():
    """Create tables and apply retention windows"""
    init_db()
    db = SessionLocal()
    try:
        RetentionService(db).purge()
    except Exception as e:
        logger.error(f"Retention purge failed: {e}", exc_info=True)
    finally:
        db.close()
    logger.info(f"Gate VMS started ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def shutdown_event():
    reset_client()


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(setup.router, prefix="/setup", tags=["setup"])
app.include_router(visitor.router, prefix="/visitor", tags=["visitor"])
app.include_router(resident.router, prefix="/resident", tags=["resident"])
app.include_router(guard.router, prefix="/guard", tags=["guard"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(superadmin.router, prefix="/superadmin", tags=["superadmin"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "database": get_client().health_check()}


@app.get("/")
async def root():
    return {"message": "Gate VMS API", "version": "1.0.0"}
