import uuid
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from liftlog.models import WorkoutLog, WorkoutSetLog
from liftlog.repositories.assignment_repo import AssignmentRepository
from liftlog.repositories.metrics_repo import MetricsRepository


def ex():
    return f"ex-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def lifter(make_user, make_assignment):
    user_id, headers = make_user()
    return user_id, headers, make_assignment(user_id)


def straight(assignment, exercise_id, weight, reps, **extra):
    return {"block_id": "block-1", "workout_assignment_id": assignment,
            "exercise_id": exercise_id, "weight": weight, "reps": reps, **extra}


def count(db, model, client_id):
    return db.execute(select(func.count()).select_from(model).where(model.client_id == client_id)).scalar_one()


def test_straight_set_first_time(client, lifter):
    user_id, h, assignment = lifter
    exercise = ex()
    r = client.post("/log-set", headers=h, json=straight(assignment, exercise, "100", "5"))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["block_type"] == "straight_set"
    assert body["set_logged"]["exercise_id"] == exercise
    assert body["set_logged"]["client_id"] == user_id
    assert body["e1rm"] == {"calculated": 116.65, "stored": 116.65, "action": "inserted",
                           "is_new_pr": True, "warning": None}
    assert body["pr"]["any_weight_pr"] and body["pr"]["any_volume_pr"]
    assert body["pr"]["results"] == [{"exercise_id": exercise, "weight_pr": True, "volume_pr": True,
                                      "weight": 100.0, "reps": 5, "volume": 500.0}]
    assert body["message"].startswith("First set logged!")

    m = client.get(f"/metrics/exercises/{exercise}", headers=h).json()
    assert m["best_weight"] == 100 and m["best_reps"] == 5 and m["best_volume"] == 500
    assert m["estimated_1rm"] == pytest.approx(116.65)


def test_e1rm_update_and_keep(client, lifter):
    _, h, assignment = lifter
    exercise = ex()
    client.post("/log-set", headers=h, json=straight(assignment, exercise, 100, 5))

    better = client.post("/log-set", headers=h, json=straight(assignment, exercise, 100, 6)).json()
    assert better["e1rm"]["action"] == "updated"
    assert better["e1rm"]["is_new_pr"] is True
    assert better["pr"]["results"][0]["weight_pr"] is True
    assert better["message"].startswith("New personal record!")

    worse = client.post("/log-set", headers=h, json=straight(assignment, exercise, 99, 10)).json()
    assert worse["e1rm"]["action"] == "updated"  # 99 * 1.333 beats 100 * 1.1998
    assert worse["pr"]["results"][0]["weight_pr"] is False
    assert worse["pr"]["results"][0]["volume_pr"] is True

    light = client.post("/log-set", headers=h, json=straight(assignment, exercise, 50, 5)).json()
    assert light["e1rm"]["action"] == "kept_existing"
    assert light["e1rm"]["stored"] == round(99 * (1 + 0.0333 * 10), 2)
    assert light["pr"]["any_weight_pr"] is False and light["pr"]["any_volume_pr"] is False
    assert light["message"].startswith("Good effort!")


def test_sets_share_one_workout_log(client, db, lifter):
    user_id, h, assignment = lifter
    a = client.post("/log-set", headers=h, json=straight(assignment, ex(), 60, 10)).json()
    b = client.post("/log-set", headers=h, json=straight(assignment, ex(), 40, 12)).json()
    assert a["workout_log_id"] == b["workout_log_id"]
    assert count(db, WorkoutLog, user_id) == 1
    assert count(db, WorkoutSetLog, user_id) == 2


def test_identical_event_twice_appends_two_records(client, db, lifter):
    user_id, h, assignment = lifter
    exercise = ex()
    payload = straight(assignment, exercise, 80, 8)
    first = client.post("/log-set", headers=h, json=payload).json()
    second = client.post("/log-set", headers=h, json=payload).json()
    assert first["set_log_id"] != second["set_log_id"]
    assert count(db, WorkoutSetLog, user_id) == 2
    assert second["pr"]["any_weight_pr"] is False
    m = client.get(f"/metrics/exercises/{exercise}", headers=h).json()
    assert (m["best_weight"], m["best_reps"], m["best_volume"]) == (80, 8, 640)


def test_malformed_session_id_does_not_fail(client, db, lifter):
    _, h, assignment = lifter
    r = client.post("/log-set", headers=h,
                    json=straight(assignment, ex(), 50, 5, session_id="definitely-not-a-uuid"))
    assert r.status_code == 201
    assert db.get(WorkoutLog, r.json()["workout_log_id"]).session_id is None


def test_session_id_links_log(client, db, lifter):
    _, h, assignment = lifter
    session_id = str(uuid.uuid4())
    r = client.post("/log-set", headers=h, json=straight(assignment, ex(), 50, 5, session_id=session_id))
    assert db.get(WorkoutLog, r.json()["workout_log_id"]).session_id == session_id


def test_template_less_assignment_rejected_without_writes(client, db, make_user, make_assignment):
    user_id, h = make_user()
    assignment = make_assignment(user_id, with_template=False)
    r = client.post("/log-set", headers=h, json=straight(assignment, ex(), 50, 5))
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "Workout assignment has no template"
    assert count(db, WorkoutLog, user_id) == 0
    assert count(db, WorkoutSetLog, user_id) == 0


def test_missing_assignment_and_log_id(client, lifter):
    _, h, _ = lifter
    r = client.post("/log-set", headers=h, json={"block_id": "b", "exercise_id": "x", "weight": 1, "reps": 1})
    assert r.status_code == 400
    assert "workout_assignment_id" in r.json()["detail"]["error"]


def test_missing_variant_field_writes_nothing(client, db, lifter):
    user_id, h, assignment = lifter
    r = client.post("/log-set", headers=h, json={"block_id": "b", "workout_assignment_id": assignment,
                                                 "exercise_id": "x", "weight": 100})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "Missing required field: reps"
    assert count(db, WorkoutLog, user_id) == 0


def test_unsupported_block_type(client, lifter):
    _, h, assignment = lifter
    r = client.post("/log-set", headers=h, json={"block_id": "b", "workout_assignment_id": assignment,
                                                 "block_type": "ladder"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "Invalid block_type: ladder"


def test_non_object_body(client, lifter):
    _, h, _ = lifter
    assert client.post("/log-set", headers=h, json=[1, 2, 3]).status_code == 400
    r = client.post("/log-set", headers={**h, "Content-Type": "application/json"}, content=b"{not json")
    assert r.status_code == 400


def test_other_clients_id_is_forbidden(client, make_user, lifter):
    _, h, assignment = lifter
    other_id, _ = make_user()
    r = client.post("/log-set", headers=h, json=straight(assignment, ex(), 50, 5, client_id=other_id))
    assert r.status_code == 403


def test_coach_logs_for_client(client, make_user, make_assignment):
    client_id, client_headers = make_user()
    _, coach_headers = make_user(role="coach")
    assignment = make_assignment(client_id)
    exercise = ex()
    r = client.post("/log-set", headers=coach_headers,
                    json=straight(assignment, exercise, 70, 5, client_id=client_id))
    assert r.status_code == 201, r.text
    assert r.json()["set_logged"]["client_id"] == client_id
    assert client.get(f"/metrics/exercises/{exercise}", headers=client_headers).status_code == 200
    rows = client.get(f"/metrics/clients/{client_id}/exercises", headers=coach_headers).json()
    assert [row["exercise_id"] for row in rows] == [exercise]


def test_superset_two_results_e1rm_from_a(client, lifter):
    _, h, assignment = lifter
    a, b = ex(), ex()
    body = client.post("/log-set", headers=h, json={
        "block_type": "superset", "block_id": "ss", "workout_assignment_id": assignment,
        "superset_exercise_a_id": a, "superset_weight_a": 80, "superset_reps_a": 8,
        "superset_exercise_b_id": b, "superset_weight_b": 60, "superset_reps_b": 10,
    }).json()
    assert [r["exercise_id"] for r in body["pr"]["results"]] == [a, b]
    assert body["e1rm"]["calculated"] == round(80 * (1 + 0.0333 * 8), 2)
    assert body["set_logged"]["superset_exercise_b_id"] == b


def test_giant_set_n_results_no_e1rm(client, lifter):
    _, h, assignment = lifter
    ids = [ex(), ex(), ex()]
    body = client.post("/log-set", headers=h, json={
        "block_type": "giant_set", "block_id": "gs", "workout_assignment_id": assignment,
        "round_number": 2,
        "giant_set_exercises": [{"exercise_id": i, "weight": 20 + n, "reps": 10} for n, i in enumerate(ids)],
    }).json()
    assert len(body["pr"]["results"]) == 3
    assert body["e1rm"]["action"] == "calculated"
    assert body["e1rm"]["calculated"] == 0
    rows = client.get("/metrics/exercises", headers=h).json()
    assert {row["exercise_id"] for row in rows} >= set(ids)
    assert all(row["estimated_1rm"] is None for row in rows if row["exercise_id"] in ids)


def test_tabata_logs_without_metrics(client, lifter):
    _, h, assignment = lifter
    body = client.post("/log-set", headers=h, json={
        "block_type": "tabata", "block_id": "tb", "workout_assignment_id": assignment,
        "tabata_rounds_completed": 8, "tabata_total_duration_sec": 240,
    }).json()
    assert body["success"] is True
    assert body["pr"]["results"] == []
    assert body["pr"]["message"] == "No weighted efforts to compare"
    assert body["message"] == "Set logged!"


def test_explicit_workout_log_id(client, lifter):
    _, h, assignment = lifter
    first = client.post("/log-set", headers=h, json=straight(assignment, ex(), 50, 5)).json()
    r = client.post("/log-set", headers=h, json={
        "block_id": "b2", "workout_log_id": first["workout_log_id"],
        "exercise_id": ex(), "weight": 30, "reps": 10,
    })
    assert r.status_code == 201
    assert r.json()["workout_log_id"] == first["workout_log_id"]


def test_metrics_failure_is_a_warning(client, db, lifter, monkeypatch):
    user_id, h, assignment = lifter

    def broken(self, user_id, exercise_ids):
        raise OperationalError("SELECT", {}, Exception("metrics table unavailable"))
    monkeypatch.setattr(MetricsRepository, "get_for_update", broken)

    r = client.post("/log-set", headers=h, json=straight(assignment, ex(), 100, 5))
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert "metrics table unavailable" in body["pr"]["warning"]
    assert body["pr"]["warning"] == "metrics table unavailable"
    assert body["e1rm"]["calculated"] == 116.65
    assert body["e1rm"]["stored"] == 116.65
    assert body["e1rm"]["action"] == "calculated"
    assert "[SQL" not in body["e1rm"]["warning"]
    assert body["e1rm"]["warning"].startswith("e1RM calculated but not saved")
    assert "not saved due to error" in body["message"]
    assert count(db, WorkoutSetLog, user_id) == 1


def test_metrics_insert_conflict_is_retried(client, lifter, monkeypatch):
    _, h, assignment = lifter
    real_upsert = MetricsRepository.upsert
    calls = {"n": 0}

    def flaky(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))
        return real_upsert(self, *args, **kwargs)
    monkeypatch.setattr(MetricsRepository, "upsert", flaky)

    body = client.post("/log-set", headers=h, json=straight(assignment, ex(), 100, 5)).json()
    assert calls["n"] == 2
    assert body["pr"]["warning"] is None
    assert body["e1rm"]["action"] == "inserted"


def test_metrics_conflict_gives_up_after_attempts(client, lifter, monkeypatch):
    _, h, assignment = lifter

    def always(self, *args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))
    monkeypatch.setattr(MetricsRepository, "upsert", always)

    body = client.post("/log-set", headers=h, json=straight(assignment, ex(), 100, 5)).json()
    assert body["success"] is True
    assert "conflicted 3 times" in body["pr"]["warning"]


def test_out_of_range_ids_are_rejected(client, db, lifter):
    user_id, h, assignment = lifter
    huge = 10**20
    for body in (
        {"block_id": "b", "workout_assignment_id": huge, "exercise_id": "x", "weight": 10, "reps": 5},
        {"block_id": "b", "workout_log_id": huge, "exercise_id": "x", "weight": 10, "reps": 5},
        straight(assignment, ex(), 10, 5, client_id=huge),
        straight(assignment, ex(), 10, 5, client_id=0),
    ):
        r = client.post("/log-set", headers=h, json=body)
        assert r.status_code == 400, body
        assert r.json()["detail"]["error"] == "Invalid request"
    assert count(db, WorkoutLog, user_id) == 0


def test_assignment_lookup_failure_is_storage_error(client, db, lifter, monkeypatch):
    user_id, h, assignment = lifter

    def broken(self, entity_id):
        raise OperationalError("SELECT", {}, Exception("connection reset"))
    monkeypatch.setattr(AssignmentRepository, "get", broken)

    r = client.post("/log-set", headers=h, json=straight(assignment, ex(), 10, 5))
    assert r.status_code == 400
    assert r.json()["detail"] == {"error": "Failed to resolve workout log", "details": "connection reset"}
    assert count(db, WorkoutSetLog, user_id) == 0
