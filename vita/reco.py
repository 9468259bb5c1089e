import threading
from typing import Iterable, Optional, Union

from .catalog import COMPLETION_EFFECTS, TaskCatalog
from .daily_reset import DailyResetTrigger
from .logger import get_logger
from .metrics import MetricsStore
from .models import MetricsPatch, ScoringWeights, Task, TaskScore, TimeWindow, UserMetrics
from .scoring import DEFAULT_WEIGHTS, get_current_time_window, score_task, time_of_day_factor

logger = get_logger("reco")

RECOMMENDATION_LIMIT = 4


def _sort_key(item: TaskScore):
    # Orden total: score desc, impacto desc, esfuerzo asc, id asc
    return (-item.score, -item.task.impact_weight, item.task.effort_min, item.task.id)


def sort_scores(items: Iterable[TaskScore]) -> list[TaskScore]:
    return sorted(items, key=_sort_key)


def rank_tasks(
    tasks: Iterable[Task],
    metrics: UserMetrics,
    window: Optional[TimeWindow],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[TaskScore]:
    scored = []
    for t in tasks:
        s, r = score_task(t, metrics, window, weights)
        scored.append(TaskScore(task=t.model_copy(), score=s, rationale=r))
    return sort_scores(scored)


def dedupe_micro_pairs(scored: Iterable[TaskScore], catalog: TaskCatalog) -> list[TaskScore]:
    # La lista ya viene ordenada: gana el primer miembro de cada par
    kept: list[TaskScore] = []
    blocked: set[str] = set()
    for item in scored:
        task = item.task
        if task.id in blocked:
            continue
        kept.append(item)
        blocked.add(task.id)
        if task.micro_alt:
            blocked.add(task.micro_alt)
        parent = catalog.parent_of(task.id)
        if parent is not None:
            blocked.add(parent.id)
    return kept


class NudgeEngine:
    """Dueño del catálogo, las métricas y el trigger de reset diario.

    Todas las mutaciones y cada pasada de recomendación van bajo el mismo
    lock, así el motor es seguro detrás de un servidor con threadpool.
    """

    def __init__(
        self,
        catalog: Optional[TaskCatalog] = None,
        metrics: Optional[MetricsStore] = None,
        reset_trigger: Optional[DailyResetTrigger] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        limit: int = RECOMMENDATION_LIMIT,
    ):
        self.catalog = catalog or TaskCatalog()
        self.metrics = metrics or MetricsStore()
        self.reset_trigger = reset_trigger or DailyResetTrigger()
        self.weights = weights
        self.limit = limit
        self._lock = threading.Lock()

    # --- recomendaciones ---

    def get_recommendations(
        self, hour: Optional[int] = None, metrics: Optional[UserMetrics] = None
    ) -> list[TaskScore]:
        with self._lock:
            if self.reset_trigger.check():
                self._reset_state()
            self.catalog.advance_cycle()
            if metrics is None:
                metrics = self.metrics.get_current_metrics()
            window = get_current_time_window(hour)

            selected: list[TaskScore] = []
            for stage, tasks, scoring_window in self._stages(window):
                seen = {item.task.id for item in selected}
                fresh = rank_tasks(
                    (t for t in tasks if t.id not in seen), metrics, scoring_window, self.weights
                )
                merged = dedupe_micro_pairs(sort_scores(selected + fresh), self.catalog)
                selected = merged[: self.limit]
                if len(selected) >= self.limit:
                    break
                logger.debug("Stage %s left %d tasks, relaxing", stage, len(selected))
            return selected

    def _stages(self, window: TimeWindow):
        live = [t for t in self.catalog.all() if not t.completed_today]
        candidates = self._substitute(self._eligible(live))

        cooled = [t for t in candidates if not self.catalog.in_cooldown(t)]
        if len(cooled) >= self.limit:
            candidates = cooled
        else:
            logger.debug("Cool-down filter skipped (%d candidates)", len(cooled))

        # La franja horaria es una preferencia: si no hay suficientes tareas
        # que encajen se puntúa todo en modo relajado (factor 1)
        fitting = [t for t in candidates if time_of_day_factor(t.time_gate, window) == 1.0]
        scoring_window: Optional[TimeWindow] = window if len(fitting) >= self.limit else None

        yield "strict", candidates, scoring_window
        # Backfill: sin cool-down y con la franja relajada
        yield "relaxed", self._substitute(self._eligible(live)), None

    def _eligible(self, tasks: list[Task]) -> list[Task]:
        # Una micro alternativa solo entra si su padre está completado o sustituido
        out = []
        for t in tasks:
            parent = self.catalog.parent_of(t.id)
            if parent is not None and not (parent.completed_today or self.catalog.is_substituted(parent)):
                continue
            out.append(t)
        return out

    def _substitute(self, tasks: list[Task]) -> list[Task]:
        out: list[Task] = []
        seen: set[str] = set()
        for t in tasks:
            if self.catalog.is_substituted(t):
                alt = self.catalog.get(t.micro_alt)
                if alt.completed_today:
                    continue
                t = alt
            if t.id in seen:
                continue
            seen.add(t.id)
            out.append(t)
        return out

    # --- acciones ---

    def complete_task(self, task_id: str) -> bool:
        with self._lock:
            task = self.catalog.mark_completed(task_id)
            if task is None:
                return False
            effect = COMPLETION_EFFECTS.get(task.id)
            if effect:
                field, amount = effect
                current = self.metrics.get_current_metrics()
                self.metrics.update_metrics({field: getattr(current, field) + amount})
                logger.info("Completed %s: %s +%g", task.id, field, amount)
            return True

    def dismiss_task(self, task_id: str) -> bool:
        with self._lock:
            return self.catalog.dismiss(task_id)

    def set_task_ignores(self, task_id: str, ignores: int) -> bool:
        with self._lock:
            return self.catalog.set_ignores(task_id, ignores)

    def daily_reset(self) -> None:
        with self._lock:
            self._reset_state()
            self.reset_trigger.mark_reset()

    def _reset_state(self) -> None:
        logger.info("Performing daily reset of tasks and metrics")
        self.catalog.reset()
        self.metrics.reset_daily_metrics()

    # --- métricas ---

    def get_metrics(self) -> UserMetrics:
        return self.metrics.get_current_metrics()

    def update_metrics(self, patch: Union[MetricsPatch, dict]) -> UserMetrics:
        with self._lock:
            return self.metrics.update_metrics(patch)

    def set_test_metrics(self, metrics: UserMetrics) -> UserMetrics:
        with self._lock:
            return self.metrics.set_test_metrics(metrics)

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return [t.model_copy() for t in self.catalog.all()]
