from survey_backend.notifications import NotificationDispatcher, get_notification_dispatcher
from survey_backend.main import app


def _create_survey(client, payload):
    res = client.post("/api/surveys", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _answers_for(client, survey_id):
    survey = client.get(f"/api/surveys/{survey_id}").json()
    q1, q2, q3 = survey["questions"]
    return [
        {"question_id": q1["id"], "answer_value": "Software engineering"},
        {"question_id": q2["id"], "answer_value": "Yes"},
        {"question_id": q3["id"], "answer_value": 7},
    ]


def test_example_scenario(client):
    res = client.post(
        "/api/surveys",
        json={
            "title": "T",
            "created_by": "u",
            "questions": [{"question_text": "Q1", "question_type": "text"}],
        },
    )
    assert res.status_code == 201
    body = res.json()
    assert "id" in body
    assert "questions" not in body
    assert body["created_by"] == "u"

    survey = client.get(f"/api/surveys/{body['id']}").json()
    assert len(survey["questions"]) == 1
    assert survey["questions"][0]["order_num"] == 1
    assert survey["questions"][0]["options"] is None


def test_survey_round_trip_keeps_order_and_options(client, survey_payload):
    created = _create_survey(client, survey_payload)
    survey = client.get(f"/api/surveys/{created['id']}").json()

    assert [q["question_text"] for q in survey["questions"]] == [
        q["question_text"] for q in survey_payload["questions"]
    ]
    assert [q["order_num"] for q in survey["questions"]] == [1, 2, 3]
    assert survey["questions"][1]["options"] == ["Yes", "No"]
    assert survey["questions"][2]["options"]["labels"] == [
        "Not confident at all",
        "Extremely confident",
    ]
    assert [q["required"] for q in survey["questions"]] == [True, True, False]


def test_list_surveys_has_no_questions(client, survey_payload):
    _create_survey(client, survey_payload)
    res = client.get("/api/surveys")
    assert res.status_code == 200
    [item] = res.json()
    assert item["title"] == "Career Readiness Survey"
    assert "questions" not in item


def test_questions_not_an_array_is_rejected_without_writing(client, survey_payload):
    before = len(client.get("/api/surveys").json())
    res = client.post("/api/surveys", json=dict(survey_payload, questions="not-an-array"))
    assert res.status_code == 400
    assert res.json()["error"] == "Missing required fields"
    assert len(client.get("/api/surveys").json()) == before


def test_missing_title_or_creator_is_rejected(client, survey_payload):
    for field in ("title", "created_by", "questions"):
        payload = {k: v for k, v in survey_payload.items() if k != field}
        assert client.post("/api/surveys", json=payload).status_code == 400
    assert client.get("/api/surveys").json() == []


def test_invalid_options_are_rejected(client, survey_payload):
    survey_payload["questions"][1]["options"] = []
    res = client.post("/api/surveys", json=survey_payload)
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid question options"

    survey_payload["questions"][1]["question_type"] = "matrix"
    res = client.post("/api/surveys", json=survey_payload)
    assert res.status_code == 400
    assert res.json()["error"] == "Unsupported question type"
    assert client.get("/api/surveys").json() == []


def test_get_missing_survey_returns_404(client):
    res = client.get("/api/surveys/999")
    assert res.status_code == 404
    assert res.json() == {"error": "Survey not found"}


def test_update_survey(client, survey_payload):
    created = _create_survey(client, survey_payload)
    res = client.put(
        f"/api/surveys/{created['id']}",
        json={"title": "Renamed", "description": "New description"},
    )
    assert res.status_code == 200
    assert res.json()["title"] == "Renamed"
    assert res.json()["description"] == "New description"

    survey = client.get(f"/api/surveys/{created['id']}").json()
    assert survey["title"] == "Renamed"
    assert len(survey["questions"]) == 3

    missing = client.put("/api/surveys/999", json={"title": "x", "description": None})
    assert missing.status_code == 404


def test_delete_survey_cascades(client, survey_payload):
    created = _create_survey(client, survey_payload)
    answers = _answers_for(client, created["id"])
    for name in ("Ada", "Grace"):
        res = client.post(
            "/api/responses",
            json={
                "survey_id": created["id"],
                "respondent_name": name,
                "respondent_email": f"{name.lower()}@university.edu",
                "answers": answers,
            },
        )
        assert res.status_code == 201
    response_id = res.json()["response_id"]

    res = client.delete(f"/api/surveys/{created['id']}")
    assert res.status_code == 200
    assert res.json() == {"message": "Survey deleted successfully"}

    assert client.get(f"/api/surveys/{created['id']}").status_code == 404
    assert client.get(f"/api/responses/{response_id}").status_code == 404
    assert client.delete(f"/api/surveys/{created['id']}").status_code == 404


def test_submit_response(client, survey_payload, mailer):
    created = _create_survey(client, survey_payload)
    answers = _answers_for(client, created["id"])

    res = client.post(
        "/api/responses",
        json={
            "survey_id": created["id"],
            "respondent_name": "Ada",
            "respondent_email": "ada@university.edu",
            "answers": answers,
        },
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["message"] == "Survey response recorded successfully"
    assert body["email_sent"] is True
    assert body["username"]
    assert body["timestamp"]

    stored = client.get(f"/api/responses/{body['response_id']}").json()
    assert stored["survey_id"] == created["id"]
    assert [a["answer_value"] for a in stored["answers"]] == [
        "Software engineering",
        "Yes",
        "7",
    ]
    assert mailer.sent[0]["recipient"] == "ada@university.edu"
    assert mailer.sent[0]["subject"].endswith("Career Readiness Survey")


def test_failed_notification_keeps_the_response(client, survey_payload, failing_mailer):
    app.dependency_overrides[get_notification_dispatcher] = lambda: (
        NotificationDispatcher(failing_mailer)
    )
    created = _create_survey(client, survey_payload)

    res = client.post(
        "/api/responses",
        json={
            "survey_id": created["id"],
            "respondent_name": "Ada",
            "respondent_email": "ada@university.edu",
            "answers": _answers_for(client, created["id"]),
        },
    )
    assert res.status_code == 201
    assert res.json()["email_sent"] is False
    assert failing_mailer.attempts == 1

    stored = client.get(f"/api/responses/{res.json()['response_id']}")
    assert stored.status_code == 200
    assert len(stored.json()["answers"]) == 3


def test_failed_answer_insert_leaves_no_response(client, survey_payload, mailer):
    created = _create_survey(client, survey_payload)
    answers = _answers_for(client, created["id"])
    answers.append({"question_id": 987654, "answer_value": "nope"})

    res = client.post(
        "/api/responses",
        json={
            "survey_id": created["id"],
            "respondent_name": "Ada",
            "respondent_email": "ada@university.edu",
            "answers": answers,
        },
    )
    assert res.status_code == 500
    assert res.json()["error"] == "Failed to save survey response"
    assert "987654" in res.json()["details"]
    assert client.get(f"/api/surveys/{created['id']}/responses").json() == []
    assert mailer.sent == []


def test_duplicate_submissions_are_both_recorded(client, survey_payload):
    created = _create_survey(client, survey_payload)
    submission = {
        "survey_id": created["id"],
        "respondent_name": "Ada",
        "respondent_email": "ada@university.edu",
        "answers": _answers_for(client, created["id"]),
    }
    first = client.post("/api/responses", json=submission).json()
    second = client.post("/api/responses", json=submission).json()

    assert first["response_id"] != second["response_id"]
    responses = client.get(f"/api/surveys/{created['id']}/responses").json()
    assert len(responses) == 2


def test_submission_validation(client, survey_payload):
    created = _create_survey(client, survey_payload)
    valid = {
        "survey_id": created["id"],
        "respondent_name": "Ada",
        "respondent_email": "ada@university.edu",
        "answers": [],
    }
    for field in ("survey_id", "respondent_name", "respondent_email", "answers"):
        payload = {k: v for k, v in valid.items() if k != field}
        assert client.post("/api/responses", json=payload).status_code == 400

    assert client.post(
        "/api/responses", json=dict(valid, answers="not-an-array")
    ).status_code == 400
    assert client.post(
        "/api/responses", json=dict(valid, respondent_email="not-an-email")
    ).status_code == 400
    assert client.get(f"/api/surveys/{created['id']}/responses").json() == []

    # An empty answer list is a valid submission
    assert client.post("/api/responses", json=valid).status_code == 201


def test_health_route(client):
    res = client.get("/api/test")
    assert res.status_code == 200
    assert res.json()["message"] == "API server is running!"
