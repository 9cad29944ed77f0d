import logging
from fastapi import FastAPI
from app.api.routes import ai_schedules, auth, conflicts
from app.core.config import settings
from app.services.ai.failure_recorder import FailureRecorder

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="ShiftDesk API", version="0.1.0")
app.state.failure_recorder = FailureRecorder(capacity=settings.FAILURE_BUFFER_SIZE)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(ai_schedules.router, prefix="/api/v1")
app.include_router(conflicts.router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "ok"}
