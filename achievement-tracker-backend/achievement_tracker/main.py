# achievement_tracker/main.py - Faculty Achievement Tracker backend
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from achievement_tracker.api.deps import get_achievement_service
from achievement_tracker.api.v1 import achievements, faculty, notifications
from achievement_tracker.config import settings
from achievement_tracker.core.database import init_db
from achievement_tracker.core.exceptions import AchievementTrackerError, PartialFailureError
from achievement_tracker.core.firebase import initialize_firebase
from achievement_tracker.models.faculty import validate_counter_columns
from achievement_tracker.services.achievement_service import AchievementService

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    validate_counter_columns()
    init_db()
    initialize_firebase()
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    yield

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(achievements.router, prefix=settings.API_V1_PREFIX, tags=["Achievements"])
app.include_router(faculty.router, prefix=settings.API_V1_PREFIX, tags=["Faculty"])
app.include_router(notifications.router, prefix=settings.API_V1_PREFIX, tags=["Notifications"])

@app.exception_handler(AchievementTrackerError)
async def achievement_tracker_error_handler(request: Request, exc: AchievementTrackerError):
    content = {"success": False, "code": exc.code, "message": exc.detail}
    if isinstance(exc, PartialFailureError):
        content.update({
            "submission_id": exc.submission_id,
            "faculty_id": exc.faculty_id,
            "increase_applied": exc.increase_applied
        })
    return JSONResponse(status_code=exc.status_code, content=content)

@app.get("/")
async def read_root():
    return {"message": "Faculty Achievement Tracker API", "status": "ok", "time": datetime.now().isoformat()}

@app.get("/health")
async def health(service: AchievementService = Depends(get_achievement_service)):
    """Database reachability and submission totals"""
    status = {"status": "healthy", "database": "connected", "time": datetime.now().isoformat()}
    try:
        status["submissions"] = await service.status_counts()
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        status.update({"status": "degraded", "database": "error", "error": str(e)})
    return status