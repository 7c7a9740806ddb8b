from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campusconnect import __version__
from campusconnect.core.config import get_settings
from campusconnect.core.logger import setup_logger
from campusconnect.api.routers import clearance, notifications, health

settings = get_settings()

setup_logger(
    "campusconnect",
    log_dir=settings.log_dir,
    level=settings.log_level,
    file_logging=settings.log_to_file,
)

app = FastAPI(
    title=settings.app_name,
    description="Student clearance workflow service",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(clearance.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
