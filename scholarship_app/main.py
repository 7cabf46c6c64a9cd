"""
FastAPI Main Application
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from scholarship_app.config import settings
from scholarship_app.database import init_db, SessionLocal
from scholarship_app.exceptions import ScholarshipError
from scholarship_app.routers import (
    auth, applications, recommendations, evaluations, audit, scheduled_jobs, portal_settings
)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(ScholarshipError)
async def scholarship_error_handler(request: Request, exc: ScholarshipError):
    """
    Render typed business-rule failures as JSON with their own status code
    """
    logger.info(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
# Auth router (no /api prefix)
app.include_router(auth.router)

# Recommender token links (public, no /api prefix)
app.include_router(recommendations.public_router)

# API routers (with /api prefix)
app.include_router(applications.router, prefix="/api")
app.include_router(recommendations.router, prefix="/api")
app.include_router(evaluations.router, prefix="/api")
app.include_router(audit.router, prefix="/api")
app.include_router(scheduled_jobs.router, prefix="/api")
app.include_router(portal_settings.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Startup event"""
    init_db()
    print(f"🚀 {settings.app_name} v{settings.app_version} started")

    # Initialize default data
    from scholarship_app.models.init_data import init_default_data

    db = SessionLocal()
    try:
        init_default_data(db)
    finally:
        db.close()

    # Start job scheduler
    from scholarship_app.services.scheduler import job_scheduler
    job_scheduler.start()
    print("⏰ Job scheduler started")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event"""
    from scholarship_app.services.scheduler import job_scheduler
    job_scheduler.shutdown()
    print("⏰ Job scheduler stopped")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": settings.app_version}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=settings.debug)
