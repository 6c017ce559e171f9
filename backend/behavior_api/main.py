import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import init_db
from .errors import AppError
from .routers import admin, directory, exports, reports, risk, rooms

settings = get_settings()

# ---------------- logging ----------------
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("behavior-api")

# --------------- Bootstrap: DB ---------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info(f"{settings.APP_NAME} {settings.APP_VERSION} ready")
    yield

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"]
)

# --------------- Error handlers ---------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse({"ok": False, "error": exc.message}, status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing, invalid = [], []
    for err in exc.errors():
        field = str(err["loc"][-1]) if err.get("loc") else "body"
        (missing if err.get("type") == "missing" else invalid).append(field)
    if missing:
        message = f"{', '.join(missing)} required"
    else:
        message = f"invalid field(s): {', '.join(invalid)}"
    return JSONResponse({"ok": False, "error": message}, status_code=400)

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    log.error(f"{request.method} {request.url.path} store error: {exc}")
    return JSONResponse({"ok": False, "error": "database error"}, status_code=500)

# --------------- Routes ---------------
@app.get("/health")
def health():
    return {"ok": True, "ts": int(time.time() * 1000), "version": settings.APP_VERSION}

app.include_router(exports.router)
app.include_router(risk.router)
app.include_router(rooms.router)
app.include_router(directory.router)
app.include_router(reports.router)
app.include_router(admin.router)
