import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .models import ScoringWeights, Task, TimeWindow, UserMetrics

DEFAULT_WEIGHTS = ScoringWeights()

# Metas diarias por categoría
WATER_GOAL_ML = 2000
STEPS_GOAL = 8000
SLEEP_GOAL_HOURS = 7
SCREEN_LIMIT_MIN = 120
LOW_MOOD = 2

# Factor suave cuando la franja horaria no coincide (nunca excluye)
OFF_WINDOW_FACTOR = 0.2

_FOUR_PLACES = Decimal("0.0001")


def urgency(category: str, metrics: UserMetrics) -> float:
    if category == "hydration":
        return max(0.0, (WATER_GOAL_ML - metrics.water_ml) / WATER_GOAL_ML)
    if category == "movement":
        return max(0.0, (STEPS_GOAL - metrics.steps) / STEPS_GOAL)
    if category == "sleep":
        return 1.0 if metrics.sleep_hours < SLEEP_GOAL_HOURS else 0.0
    if category == "screen":
        return 1.0 if metrics.screen_time_min > SCREEN_LIMIT_MIN else 0.0
    if category == "mood":
        return 1.0 if metrics.mood_1to5 <= LOW_MOOD else 0.3
    return 0.0


def inverse_effort(effort_min: float) -> float:
    # Esfuerzo <= 0 se trata como 1 minuto
    mins = max(effort_min, 1)
    return 1 / math.log2(mins + 2)


def time_of_day_factor(time_gate: Optional[str], window: Optional[TimeWindow]) -> float:
    # window=None -> modo relajado, la franja no penaliza a nadie
    if window is None or not time_gate:
        return 1.0
    return 1.0 if time_gate == window else OFF_WINDOW_FACTOR


def get_current_time_window(hour: Optional[int] = None) -> TimeWindow:
    if hour is None:
        hour = datetime.now().hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "day"
    return "evening"


def round_score(value: float) -> float:
    # Redondeo half-away-from-zero a 4 decimales, sobre el repr corto del float
    return float(Decimal(repr(value)).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP))


def calculate_score(
    task: Task,
    metrics: UserMetrics,
    window: Optional[TimeWindow],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    raw = (
        weights.w_urgency * urgency(task.category, metrics)
        + weights.w_impact * task.impact_weight
        + weights.w_effort * inverse_effort(task.effort_min)
        + weights.w_tod * time_of_day_factor(task.time_gate, window)
        - weights.w_penalty * task.ignores
    )
    return round_score(raw)


def generate_rationale(
    task: Task, metrics: UserMetrics, score: float, window: Optional[TimeWindow]
) -> str:
    u = urgency(task.category, metrics)
    effort = inverse_effort(task.effort_min)
    tod = time_of_day_factor(task.time_gate, window)
    return (
        f"Score: {score} | Urgency: {u:.3f} | Impact: {task.impact_weight:g} | "
        f"Effort: {effort:.3f} | Time: {tod:g} | Ignores: {task.ignores}"
    )


def score_task(
    task: Task,
    metrics: UserMetrics,
    window: Optional[TimeWindow],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> tuple[float, str]:
    score = calculate_score(task, metrics, window, weights)
    return score, generate_rationale(task, metrics, score, window)
