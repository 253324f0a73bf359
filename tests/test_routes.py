from datetime import datetime, timedelta, timezone


def test_health_endpoint(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["ai_gateway_configured"] is True


def test_service_routes_require_token(client):
    response = client.get("/api/v1/workouts")

    assert response.status_code == 401
    assert response.json() == {"error": "Missing authorization header"}


def test_create_workout_with_defaults(client, auth_headers):
    response = client.post("/api/v1/workouts", headers=auth_headers, json={
        "title": "  ",
        "exercises": [
            {"name": "Squat", "sets": 5, "reps": 5, "weight": 100},
            {"name": "", "sets": 3, "reps": 10},
        ],
    })

    assert response.status_code == 201
    workout = response.json()["workout"]
    assert workout["title"] == "Workout Session"
    assert workout["duration_minutes"] == 30
    assert workout["calories_burned"] == 200
    assert [ex["name"] for ex in workout["exercises"]] == ["Squat"]

    fetched = client.get(f"/api/v1/workouts/{workout['id']}", headers=auth_headers)
    assert fetched.json()["workout"]["exercises"][0]["sets"] == 5


def test_list_workouts_ordering(client, auth_headers):
    base = datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc)
    for day, title in enumerate(["first", "second", "third"]):
        client.post("/api/v1/workouts", headers=auth_headers, json={
            "title": title,
            "completed_at": (base + timedelta(days=day)).isoformat(),
        })

    newest = client.get("/api/v1/workouts", headers=auth_headers).json()["workouts"]
    oldest = client.get("/api/v1/workouts?order=asc&limit=2", headers=auth_headers).json()["workouts"]

    assert [w["title"] for w in newest] == ["third", "second", "first"]
    assert [w["title"] for w in oldest] == ["first", "second"]


def test_other_users_rows_are_not_found(client, signup, auth_headers):
    workout = client.post("/api/v1/workouts", headers=auth_headers, json={"title": "Mine"}).json()["workout"]
    other = signup("other@example.com")

    response = client.get(f"/api/v1/workouts/{workout['id']}", headers=other["headers"])
    listed = client.get("/api/v1/workouts", headers=other["headers"])

    assert response.status_code == 404
    assert response.json() == {"error": "Workout not found"}
    assert listed.json() == {"workouts": []}


def test_nutrition_totals_cover_every_submitted_meal(client, auth_headers):
    response = client.post("/api/v1/nutrition", headers=auth_headers, json={
        "date": "2026-10-01",
        "meals": [
            {"name": "Chicken salad", "calories": 300, "protein": 30, "carbs": 10, "fat": 12},
            {"name": "", "calories": 100, "protein": 5},
        ],
    })

    assert response.status_code == 201
    entry = response.json()["nutrition"]
    assert entry["date"] == "2026-10-01"
    assert entry["total_calories"] == 400
    assert entry["total_protein"] == 35
    assert len(entry["meals"]) == 1

    listed = client.get("/api/v1/nutrition", headers=auth_headers).json()["nutrition"]
    assert [n["id"] for n in listed] == [entry["id"]]


def test_missing_nutrition_log(client, auth_headers):
    response = client.get("/api/v1/nutrition/999", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Nutrition log not found"}


def test_health_metrics_create_sync_and_filter(client, auth_headers):
    created = client.post("/api/v1/health-metrics", headers=auth_headers, json={
        "metric_type": "heart_rate", "value": 64, "unit": "bpm",
    })
    synced = client.post("/api/v1/health-metrics/sync", headers=auth_headers, json={
        "source": "google_fit",
        "metrics": [
            {"metric_type": "steps", "value": 8200},
            {"metric_type": "sleep_hours", "value": 7.5, "unit": "h"},
        ],
    })

    assert created.status_code == 201
    assert created.json()["metric"]["source"] == "manual"
    assert synced.status_code == 201
    assert synced.json()["synced"] == 2
    assert {m["source"] for m in synced.json()["metrics"]} == {"google_fit"}

    steps = client.get("/api/v1/health-metrics?metric_type=steps", headers=auth_headers).json()["metrics"]
    assert [m["value"] for m in steps] == [8200]


def test_dashboard_summary(client, auth_headers):
    client.post("/api/v1/workouts", headers=auth_headers, json={"duration_minutes": 40, "calories_burned": 350})
    client.post("/api/v1/workouts", headers=auth_headers, json={"duration_minutes": 20, "calories_burned": 150})
    client.post("/api/v1/health-metrics/sync", headers=auth_headers, json={"metrics": [
        {"metric_type": "heart_rate", "value": 70, "recorded_at": "2026-10-01T07:00:00+00:00"},
        {"metric_type": "sleep_hours", "value": 6.5, "recorded_at": "2026-10-01T08:00:00+00:00"},
        {"metric_type": "weight", "value": 72, "recorded_at": "2026-10-01T09:00:00+00:00"},
    ]})

    summary = client.get("/api/v1/dashboard/summary", headers=auth_headers).json()

    assert summary["workouts_count"] == 2
    assert summary["calories_burned"] == 500
    assert summary["active_minutes"] == 60
    assert summary["heart_rate_latest"] == 70
    assert summary["radar"] == [
        {"metric": "Sleep Hours", "value": 6.5},
        {"metric": "Heart Rate", "value": 70.0},
    ]


def test_progress_summary(client, auth_headers):
    client.post("/api/v1/workouts", headers=auth_headers, json={
        "calories_burned": 100, "duration_minutes": 10, "completed_at": "2026-01-05T10:00:00+00:00",
    })
    client.post("/api/v1/workouts", headers=auth_headers, json={
        "calories_burned": 201, "duration_minutes": 25, "completed_at": "2026-01-06T10:00:00+00:00",
    })

    progress = client.get("/api/v1/progress", headers=auth_headers).json()

    assert progress["total_workouts"] == 2
    assert progress["total_calories"] == 301
    assert progress["avg_calories"] == 151
    assert progress["total_minutes"] == 35
    assert [point["date"] for point in progress["chart"]] == ["2026-01-05", "2026-01-06"]


def test_recommendation_listing_hides_expired(client, db, user):
    now = datetime.now(timezone.utc)
    db.create_ai_recommendation(user["user_id"], "meal", "AI Meal Plan", "stale", None,
                                now - timedelta(days=10), now - timedelta(days=3))
    fresh = db.create_ai_recommendation(user["user_id"], "workout", "AI Workout Plan", "fresh", None,
                                        now, now + timedelta(days=7))

    current = client.get("/api/v1/recommendations", headers=user["headers"]).json()["recommendations"]
    everything = client.get("/api/v1/recommendations?include_expired=true",
                            headers=user["headers"]).json()["recommendations"]

    assert [r["id"] for r in current] == [fresh["id"]]
    assert len(everything) == 2

    single = client.get(f"/api/v1/recommendations/{fresh['id']}", headers=user["headers"])
    assert single.json()["recommendation"]["description"] == "fresh"


def test_recommendation_generated_then_listed(client, auth_headers):
    created = client.post("/functions/v1/ai-recommendations", headers=auth_headers, json={
        "type": "health", "healthData": [], "workoutHistory": [],
    })

    listed = client.get("/api/v1/recommendations", headers=auth_headers).json()["recommendations"]

    assert created.status_code == 200
    assert [r["id"] for r in listed] == [created.json()["recommendation"]["id"]]
    assert listed[0]["title"] == "AI Health Recommendation"


def test_recommendation_context(client, auth_headers):
    for minutes in range(7):
        client.post("/api/v1/workouts", headers=auth_headers, json={"duration_minutes": minutes})
    client.post("/api/v1/health-metrics", headers=auth_headers, json={"metric_type": "stress_level", "value": 3})

    context = client.get("/api/v1/recommendations/context", headers=auth_headers).json()

    assert len(context["workoutHistory"]) == 5
    assert [m["metric_type"] for m in context["healthData"]] == ["stress_level"]
