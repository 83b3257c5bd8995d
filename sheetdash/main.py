"""Main FastAPI application for the Sheetdash service"""
import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .db.session import init_db
from .errors import SheetdashError
from .models import HealthCheckResponse
from .routes import (
    agents,
    charts,
    conversations,
    dashboards,
    documents,
    extraction,
    integrations,
    projects,
    spreadsheets,
    users,
    webhooks
)

# Set up logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Spreadsheet, dashboard and AI assistant backend",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(spreadsheets.router)
app.include_router(charts.router)
app.include_router(dashboards.router)
app.include_router(agents.router)
app.include_router(conversations.router)
app.include_router(documents.router)
app.include_router(integrations.router)
app.include_router(webhooks.router)
app.include_router(extraction.router)


@app.exception_handler(SheetdashError)
async def sheetdash_error_handler(request: Request, exc: SheetdashError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def startup():
    """Create tables on startup"""
    init_db()
    logger.info(f"{settings.SERVICE_NAME} started")


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    # Check database
    try:
        from .db.session import engine
        from sqlalchemy import text
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        dependencies["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        dependencies["database"] = "unhealthy"

    status = "healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded"

    return HealthCheckResponse(
        status=status,
        service=settings.SERVICE_NAME,
        version="1.0.0",
        timestamp=datetime.utcnow().isoformat() + "Z",
        dependencies=dependencies
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": "1.0.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sheetdash.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=True
    )
