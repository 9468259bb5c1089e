from typing import Optional, Literal
from pydantic import BaseModel, Field
from datetime import datetime

Category = Literal["hydration", "movement", "screen", "sleep", "mood"]
TimeWindow = Literal["morning", "day", "evening"]


class UserMetrics(BaseModel):
    water_ml: float = 0
    steps: float = 0
    sleep_hours: float = 0
    screen_time_min: float = 0
    mood_1to5: float = 3


class MetricsPatch(BaseModel):
    # Validación de frontera: el core asume números ya saneados
    water_ml: Optional[float] = Field(default=None, ge=0, le=20000)
    steps: Optional[float] = Field(default=None, ge=0, le=200000)
    sleep_hours: Optional[float] = Field(default=None, ge=0, le=24)
    screen_time_min: Optional[float] = Field(default=None, ge=0, le=1440)
    mood_1to5: Optional[float] = Field(default=None, ge=1, le=5)


class Task(BaseModel):
    id: str
    title: str
    category: Category
    impact_weight: float = Field(gt=0)
    effort_min: float = Field(gt=0)
    time_gate: Optional[TimeWindow] = None
    micro_alt: Optional[str] = None
    # Estado de ejecución (volátil, se limpia en el reset diario)
    ignores: int = 0
    completed_today: bool = False
    cooldown_until: Optional[int] = None


class ScoringWeights(BaseModel):
    w_urgency: float = 0.5
    w_impact: float = 0.3
    w_effort: float = 0.15
    w_tod: float = 0.15
    w_penalty: float = 0.2


class TaskScore(BaseModel):
    task: Task
    score: float
    rationale: str


class RecommendationResponse(BaseModel):
    recommendations: list[TaskScore]
    timestamp: datetime
    user_metrics: UserMetrics


class ActionRequest(BaseModel):
    task_id: str = Field(min_length=1)


class ActionResponse(BaseModel):
    success: bool
    message: str
    timestamp: datetime


class MetricsResponse(BaseModel):
    metrics: UserMetrics
    timestamp: datetime


class MetricsUpdateResponse(MetricsResponse):
    success: bool = True


class IgnoresRequest(BaseModel):
    ignores: int = Field(ge=0)
