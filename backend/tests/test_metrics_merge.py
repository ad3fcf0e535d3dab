from liftlog.services.blocks import PerformanceTuple
from liftlog.services.metrics import MetricsSnapshot, merge_metrics


def t(weight, reps, exercise_id="squat"):
    return PerformanceTuple(exercise_id=exercise_id, weight=weight, reps=reps)


def stored(**values):
    return {"squat": MetricsSnapshot(exercise_id="squat", **values)}


def test_first_effort_is_weight_and_volume_pr():
    result = merge_metrics({}, [t(80, 8)])
    (r,) = result.results
    assert r.weight_pr and r.volume_pr
    assert r.volume == 640
    (row,) = result.rows
    assert (row.best_weight, row.best_reps, row.best_volume) == (80, 8, 640)
    assert (row.best_volume_weight, row.best_volume_reps) == (80, 8)


def test_equal_weight_more_reps_is_weight_pr():
    result = merge_metrics(stored(best_weight=100, best_reps=5, best_volume=500), [t(100, 6)])
    assert result.results[0].weight_pr
    assert result.rows[0].best_reps == 6


def test_lighter_weight_more_volume_is_only_volume_pr():
    existing = stored(best_weight=100, best_reps=5, best_volume=500)
    result = merge_metrics(existing, [t(99, 10)])
    r = result.results[0]
    assert not r.weight_pr
    assert r.volume_pr
    row = result.rows[0]
    assert row.best_weight == 100 and row.best_reps == 5
    assert row.best_volume == 990


def test_lighter_weight_lower_volume_changes_nothing():
    existing = stored(best_weight=100, best_reps=5, best_volume=1000)
    result = merge_metrics(existing, [t(99, 10)])
    assert not result.results[0].weight_pr
    assert not result.results[0].volume_pr
    assert result.rows == []
    assert not result.any_weight_pr and not result.any_volume_pr


def test_equal_volume_is_not_a_pr():
    result = merge_metrics(stored(best_weight=100, best_reps=5, best_volume=500), [t(50, 10)])
    assert not result.results[0].volume_pr


def test_merge_does_not_mutate_inputs():
    existing = stored(best_weight=100, best_reps=5, best_volume=500)
    merge_metrics(existing, [t(120, 5)])
    assert existing["squat"].best_weight == 100


def test_efforts_on_same_exercise_apply_in_order():
    result = merge_metrics({}, [t(60, 10, "row"), t(70, 8, "row")])
    first, second = result.results
    assert first.weight_pr and first.volume_pr
    assert second.weight_pr and not second.volume_pr  # 560 < 600
    (row,) = result.rows
    assert row.best_weight == 70 and row.best_volume == 600


def test_one_row_per_touched_exercise():
    result = merge_metrics({}, [t(60, 10, "a"), t(40, 12, "b"), t(20, 15, "c")])
    assert sorted(r.exercise_id for r in result.rows) == ["a", "b", "c"]


def test_e1rm_inserted_when_none_stored():
    primary = t(100, 5)
    result = merge_metrics({}, [primary], primary, 116.65)
    assert result.e1rm.action == "inserted"
    assert result.e1rm.is_new_pr
    assert result.rows[0].estimated_1rm == 116.65


def test_e1rm_updated_when_higher():
    primary = t(100, 5)
    result = merge_metrics(stored(estimated_1rm=110.0, best_weight=100, best_reps=5, best_volume=500),
                           [primary], primary, 116.65)
    assert result.e1rm.action == "updated"
    assert result.e1rm.stored == 116.65
    assert result.e1rm.is_new_pr


def test_e1rm_kept_when_not_higher():
    primary = t(80, 5)
    result = merge_metrics(stored(estimated_1rm=150.0, best_weight=130, best_reps=3, best_volume=1000),
                           [primary], primary, 93.32)
    assert result.e1rm.action == "kept_existing"
    assert result.e1rm.stored == 150.0
    assert result.e1rm.calculated == 93.32
    assert not result.e1rm.is_new_pr
    assert result.rows == []


def test_no_primary_means_calculated_only():
    result = merge_metrics({}, [t(50, 10, "a"), t(40, 10, "b")])
    assert result.e1rm.action == "calculated"
    assert result.e1rm.calculated == 0
    assert all(row.estimated_1rm is None for row in result.rows)


def test_resubmission_converges():
    first = merge_metrics({}, [t(80, 8)], t(80, 8), 101.31)
    again = merge_metrics({r.exercise_id: r for r in first.rows}, [t(80, 8)], t(80, 8), 101.31)
    assert again.rows == []
    assert again.e1rm.action == "kept_existing"
