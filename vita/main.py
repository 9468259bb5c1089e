from datetime import datetime
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .logger import get_logger, setup_logging
from .models import (
    ActionRequest,
    ActionResponse,
    IgnoresRequest,
    MetricsPatch,
    MetricsResponse,
    MetricsUpdateResponse,
    RecommendationResponse,
    Task,
    UserMetrics,
)
from .reco import NudgeEngine

logger = get_logger("api")

app = FastAPI(title="Vita-AI Smart Task Manager API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials="*" not in config.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Estado en memoria de un único usuario (sin persistencia)
engine = NudgeEngine()


def get_engine() -> NudgeEngine:
    return engine


@app.get("/")
async def root():
    return {
        "message": "Vita-AI Smart Task Manager API",
        "version": app.version,
        "endpoints": {
            "recommendations": "GET /api/recommendations",
            "complete_task": "POST /api/actions/complete",
            "dismiss_task": "POST /api/actions/dismiss",
            "metrics": "GET/POST /api/metrics",
            "tasks": "GET /api/tasks",
            "admin": "/api/admin/*",
        },
    }


@app.get("/health")
@app.get("/api/health")
async def health():
    return {"status": "ok", "time": datetime.now().isoformat()}


@app.get("/api/recommendations", response_model=RecommendationResponse)
def recommendations(
    hour: Optional[int] = Query(default=None, ge=0, le=23),
    eng: NudgeEngine = Depends(get_engine),
):
    try:
        items = eng.get_recommendations(hour)
        metrics = eng.get_metrics()
    except Exception:
        logger.exception("Error getting recommendations")
        raise HTTPException(status_code=500, detail="Failed to get recommendations")
    return RecommendationResponse(
        recommendations=items, timestamp=datetime.now(), user_metrics=metrics
    )


@app.post("/api/actions/complete", response_model=ActionResponse)
def complete_task(req: ActionRequest, eng: NudgeEngine = Depends(get_engine)):
    if not eng.complete_task(req.task_id):
        raise HTTPException(status_code=404, detail="Task not found or already completed")
    return ActionResponse(
        success=True,
        message=f"Task {req.task_id} completed successfully",
        timestamp=datetime.now(),
    )


@app.post("/api/actions/dismiss", response_model=ActionResponse)
def dismiss_task(req: ActionRequest, eng: NudgeEngine = Depends(get_engine)):
    if not eng.dismiss_task(req.task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return ActionResponse(
        success=True,
        message=f"Task {req.task_id} dismissed successfully",
        timestamp=datetime.now(),
    )


@app.get("/api/metrics", response_model=MetricsResponse)
def read_metrics(eng: NudgeEngine = Depends(get_engine)):
    return MetricsResponse(metrics=eng.get_metrics(), timestamp=datetime.now())


@app.post("/api/metrics", response_model=MetricsUpdateResponse)
def write_metrics(patch: MetricsPatch, eng: NudgeEngine = Depends(get_engine)):
    updated = eng.update_metrics(patch)
    return MetricsUpdateResponse(metrics=updated, timestamp=datetime.now())


@app.get("/api/tasks", response_model=List[Task])
def list_tasks(eng: NudgeEngine = Depends(get_engine)):
    return eng.list_tasks()


# --- Admin: sembrado determinista para pruebas ---

@app.post("/api/admin/reset")
def admin_reset(eng: NudgeEngine = Depends(get_engine)):
    eng.daily_reset()
    return {"success": True, "timestamp": datetime.now().isoformat()}


@app.put("/api/admin/metrics", response_model=MetricsUpdateResponse)
def admin_set_metrics(metrics: UserMetrics, eng: NudgeEngine = Depends(get_engine)):
    return MetricsUpdateResponse(metrics=eng.set_test_metrics(metrics), timestamp=datetime.now())


@app.put("/api/admin/tasks/{task_id}/ignores")
def admin_set_ignores(task_id: str, req: IgnoresRequest, eng: NudgeEngine = Depends(get_engine)):
    if not eng.set_task_ignores(task_id, req.ignores):
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True, "task_id": task_id, "ignores": req.ignores}


def main():
    setup_logging(config.LOG_LEVEL)
    uvicorn.run(
        "vita.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.RELOAD,
    )


if __name__ == "__main__":
    main()
