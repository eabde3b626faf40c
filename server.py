from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from database.mongodb import db
from config import get_settings
from models.components import AIRCRAFT_COMPONENTS_INDEXES
from models.maintenance import MAINTENANCE_VISITS_INDEXES
from models.memberships import MEMBERSHIPS_INDEXES
from models.training import ENROLLMENTS_INDEXES
from routes import aircraft, components, maintenance_visits, members, memberships, account_statement, training
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()

INDEXES = {
    "aircraft_components": AIRCRAFT_COMPONENTS_INDEXES,
    "maintenance_visits": MAINTENANCE_VISITS_INDEXES,
    "memberships": MEMBERSHIPS_INDEXES,
    "syllabus_enrollments": ENROLLMENTS_INDEXES,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the app"""
    # Startup
    await db.connect(settings.mongo_url, settings.db_name)
    await db.ensure_indexes(INDEXES)
    logger.info(f"Flight School API started (timezone {settings.school_timezone})")
    yield
    # Shutdown
    await db.disconnect()
    logger.info("Flight School API stopped")

# Create FastAPI app
app = FastAPI(
    title="Flight School API",
    description="Aircraft maintenance tracking, members and memberships",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# Include routers
app.include_router(aircraft.router)
app.include_router(components.router)
app.include_router(maintenance_visits.router)
app.include_router(members.router)
app.include_router(memberships.router)
app.include_router(account_statement.router)
app.include_router(training.router)

@app.get("/")
async def root():
    return {
        "message": "Flight School API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/api")
async def api_root():
    return {
        "message": "Flight School API",
        "endpoints": {
            "aircraft": "/api/aircraft",
            "components": "/api/aircraft-components",
            "maintenance_visits": "/api/maintenance-visits",
            "members": "/api/members",
            "memberships": "/api/memberships",
            "account_statement": "/api/account-statement"
        }
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
