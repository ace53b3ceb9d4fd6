# invoice_dashboard/main.py
from dotenv import load_dotenv

# Load environment variables from .env BEFORE anything else
load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import health
from .api.clients import main as clients_main_api
from .api.payments import main as payments_main_api
from .api.reminders import main as reminders_main_api
from .core.config import get_settings
from .core.exceptions import StoreUnavailableError
from .db.engine_sync import create_sync_db_and_tables
from .services.email_service import EmailService
from .views import router as views_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Invoicing Dashboard", version="1.0.0")


# --- Startup ---
@app.on_event("startup")
def on_startup():
    """Create tables and the email sender shared by all requests."""
    create_sync_db_and_tables()
    app.state.email_service = EmailService(settings)
    if not app.state.email_service.is_configured:
        logger.warning("SMTP is not configured; reminders will be reported as failed.")
    logger.info("✅ Database tables initialized")


# ============================================================================
# --- CORS ---
# ============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# --- HTTP SECURITY HEADERS ---
# ============================================================================
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================================
# --- GLOBAL EXCEPTION HANDLERS ---
# ============================================================================
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed fields are reported as a plain 400
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "; ".join(errors)})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# ============================================================================
# --- ROUTERS INCLUSION ---
# ============================================================================
app.include_router(views_router)
app.include_router(health.router)
app.include_router(clients_main_api.router, prefix="/api", tags=["Clients"])
app.include_router(payments_main_api.router, prefix="/api", tags=["Payments"])
app.include_router(reminders_main_api.router, prefix="/api", tags=["Email"])
