from typing import Union

from .models import MetricsPatch, UserMetrics


class MetricsStore:
    def __init__(self, initial: UserMetrics | None = None):
        self._current = (initial or UserMetrics()).model_copy()

    def get_current_metrics(self) -> UserMetrics:
        # Copia: mutar el resultado no toca el estado guardado
        return self._current.model_copy()

    def update_metrics(self, patch: Union[MetricsPatch, dict]) -> UserMetrics:
        if isinstance(patch, MetricsPatch):
            updates = patch.model_dump(exclude_none=True)
        else:
            updates = {k: v for k, v in patch.items() if k in UserMetrics.model_fields and v is not None}
        self._current = self._current.model_copy(update=updates)
        return self.get_current_metrics()

    def reset_daily_metrics(self) -> None:
        self._current = UserMetrics()

    def set_test_metrics(self, metrics: UserMetrics) -> UserMetrics:
        self._current = metrics.model_copy()
        return self.get_current_metrics()
