import pytest
from datetime import date

from vita.catalog import COOLDOWN_CYCLES, DEFAULT_TASKS, TaskCatalog
from vita.daily_reset import DailyResetTrigger
from vita.metrics import MetricsStore
from vita.models import MetricsPatch, Task, UserMetrics


@pytest.fixture
def catalog():
    return TaskCatalog()


class TestCatalogLoad:

    def test_default_catalog_shape(self, catalog):
        tasks = catalog.all()
        assert len(tasks) == 7
        categories = [t.category for t in tasks]
        assert categories.count("hydration") == 2
        assert categories.count("movement") == 2
        assert {"screen", "sleep", "mood"} <= set(categories)

    def test_micro_alt_index(self, catalog):
        assert catalog.parent_of("water-250").id == "water-500"
        assert catalog.parent_of("steps-300").id == "steps-1k"
        assert catalog.parent_of("screen-break-10") is None

    def test_instances_do_not_share_state(self):
        a, b = TaskCatalog(), TaskCatalog()
        a.dismiss("water-500")
        assert b.get("water-500").ignores == 0
        assert DEFAULT_TASKS[0].ignores == 0

    def test_rejects_duplicate_ids(self):
        t = Task(id="x", title="X", category="mood", impact_weight=1, effort_min=1)
        with pytest.raises(ValueError):
            TaskCatalog([t, t])

    def test_rejects_unknown_micro_alt(self):
        t = Task(id="x", title="X", category="mood", impact_weight=1, effort_min=1, micro_alt="nope")
        with pytest.raises(ValueError):
            TaskCatalog([t])

    def test_rejects_nested_micro_alt(self):
        tasks = [
            Task(id="a", title="A", category="mood", impact_weight=1, effort_min=1, micro_alt="b"),
            Task(id="b", title="B", category="mood", impact_weight=1, effort_min=1, micro_alt="c"),
            Task(id="c", title="C", category="mood", impact_weight=1, effort_min=1),
        ]
        with pytest.raises(ValueError):
            TaskCatalog(tasks)


class TestLifecycle:

    def test_complete_once(self, catalog):
        assert catalog.mark_completed("water-500") is not None
        assert catalog.get("water-500").completed_today
        assert catalog.mark_completed("water-500") is None

    def test_complete_unknown(self, catalog):
        assert catalog.mark_completed("nope") is None

    def test_dismiss_sets_cooldown(self, catalog):
        catalog.advance_cycle()
        assert catalog.dismiss("water-500")
        task = catalog.get("water-500")
        assert task.ignores == 1
        assert task.cooldown_until == 1 + COOLDOWN_CYCLES
        assert catalog.in_cooldown(task)

        catalog.advance_cycle()
        catalog.advance_cycle()
        assert catalog.in_cooldown(task)
        catalog.advance_cycle()
        assert not catalog.in_cooldown(task)

    def test_dismiss_at_threshold_has_no_cooldown(self, catalog):
        for _ in range(3):
            catalog.dismiss("water-500")
        task = catalog.get("water-500")
        assert task.ignores == 3
        assert task.cooldown_until is None
        assert not catalog.in_cooldown(task)
        assert catalog.is_substituted(task)

    def test_threshold_without_micro_alt_is_not_substitution(self, catalog):
        catalog.set_ignores("mood-check-quick", 5)
        assert not catalog.is_substituted(catalog.get("mood-check-quick"))

    def test_dismiss_unknown(self, catalog):
        assert catalog.dismiss("nope") is False

    def test_set_ignores(self, catalog):
        assert catalog.set_ignores("steps-1k", 3)
        assert catalog.get("steps-1k").ignores == 3
        assert catalog.set_ignores("nope", 1) is False

    def test_reset_is_idempotent(self, catalog):
        catalog.advance_cycle()
        catalog.dismiss("water-500")
        catalog.mark_completed("steps-1k")
        catalog.reset()
        catalog.reset()
        assert catalog.cycle == 0
        for t in catalog.all():
            assert t.ignores == 0
            assert not t.completed_today
            assert t.cooldown_until is None


class TestMetricsStore:

    def test_baseline(self):
        assert MetricsStore().get_current_metrics() == UserMetrics(
            water_ml=0, steps=0, sleep_hours=0, screen_time_min=0, mood_1to5=3
        )

    def test_returns_copy(self):
        store = MetricsStore()
        snapshot = store.get_current_metrics()
        snapshot.water_ml = 999
        assert store.get_current_metrics().water_ml == 0

    def test_partial_update(self):
        store = MetricsStore()
        updated = store.update_metrics(MetricsPatch(steps=1200))
        assert updated.steps == 1200
        assert updated.mood_1to5 == 3
        assert store.update_metrics({"water_ml": 300}).steps == 1200

    def test_reset_and_seed(self):
        store = MetricsStore()
        seeded = UserMetrics(water_ml=900, steps=4000, sleep_hours=6, screen_time_min=150, mood_1to5=2)
        assert store.set_test_metrics(seeded) == seeded
        store.reset_daily_metrics()
        assert store.get_current_metrics() == UserMetrics()


class TestDailyResetTrigger:

    def test_detects_date_change_once(self):
        days = [date(2026, 10, 16)]
        trigger = DailyResetTrigger(today=lambda: days[0])
        assert trigger.check() is False

        days[0] = date(2026, 10, 17)
        assert trigger.check() is True
        assert trigger.last_reset_date == date(2026, 10, 17)
        assert trigger.check() is False

    def test_mark_reset(self):
        days = [date(2026, 10, 16)]
        trigger = DailyResetTrigger(today=lambda: days[0])
        days[0] = date(2026, 10, 18)
        trigger.mark_reset()
        assert trigger.check() is False
