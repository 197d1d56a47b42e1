from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from db import database
from main import app
from utils.sm2 import MAX_INTERVAL_DAYS


@pytest.fixture
def client(db_path):
    return TestClient(app)


def _create(client, question="What organelle produces ATP?", answer="Mitochondria", **extra):
    payload = {"question": question, "answer": answer, "owner_id": "user-1", "lecture_id": "lec-1"}
    payload.update(extra)
    response = client.post("/flashcards", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_new_card_is_due_immediately(client):
    card = _create(client)

    assert card["phase"] == "new"
    assert card["easiness_factor"] == 2.5
    assert card["interval_days"] == 0

    due = client.get("/review/due", params={"owner_id": "user-1"}).json()
    assert [item["id"] for item in due] == [card["id"]]
    count = client.get("/review/due/count", params={"owner_id": "user-1"}).json()
    assert count["due"] == 1


def test_submit_grade_reschedules_and_logs(client):
    card = _create(client)
    response = client.post(
        f"/review/{card['id']}",
        json={"grade": 5, "reviewed_at": "2030-01-01T00:00:00Z"},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["grade"] == 5
    assert body["passed"] is True
    updated = body["card"]
    assert updated["repetition_count"] == 1
    assert updated["interval_days"] == 1
    assert updated["version"] == 1
    assert updated["phase"] == "learning"
    assert _parse(updated["next_review_at"]) == datetime(2030, 1, 2, tzinfo=timezone.utc)

    assert client.get("/review/due", params={"owner_id": "user-1"}).json() == []
    history = client.get(f"/review/{card['id']}/history").json()
    assert [entry["grade"] for entry in history["reviews"]] == [5]


def test_typed_answer_is_graded(client):
    card = _create(client)
    response = client.post(f"/review/{card['id']}", json={"typed_answer": "mitochondria"})

    assert response.status_code == 200, response.text
    assert response.json()["grade"] == 5

    response = client.post(f"/review/{card['id']}", json={"typed_answer": "ribosome"})
    body = response.json()
    assert body["passed"] is False
    assert body["card"]["repetition_count"] == 0
    assert body["card"]["interval_days"] == 1


@pytest.mark.parametrize("payload", [{"grade": 6}, {"grade": -1}, {"grade": True}, {"grade": "4"}, {}])
def test_invalid_review_payload_is_rejected(client, payload):
    card = _create(client)
    response = client.post(f"/review/{card['id']}", json=payload)

    assert response.status_code == 422
    stored = client.get(f"/flashcards/{card['id']}").json()
    assert stored["version"] == 0


def test_review_unknown_card_returns_404(client):
    response = client.post("/review/missing", json={"grade": 3})
    assert response.status_code == 404


def test_stale_expected_version_returns_409(client):
    card = _create(client)
    client.post(f"/review/{card['id']}", json={"grade": 4})

    response = client.post(f"/review/{card['id']}", json={"grade": 4, "expected_version": 0})

    assert response.status_code == 409
    stored = client.get(f"/flashcards/{card['id']}").json()
    assert stored["repetition_count"] == 1


def test_corrupt_state_is_reported_as_internal_error(client):
    card = _create(client)
    with database.get_conn() as conn:
        conn.execute("UPDATE flashcards SET easiness_factor = 1.1 WHERE id = ?", (card["id"],))
        conn.commit()

    response = client.post(f"/review/{card['id']}", json={"grade": 5})

    assert response.status_code == 500
    assert "easiness" not in response.json()["detail"]


def test_undo_restores_previous_schedule(client):
    card = _create(client)
    first = client.post(f"/review/{card['id']}", json={"grade": 5, "reviewed_at": "2030-01-01T00:00:00Z"}).json()
    client.post(f"/review/{card['id']}", json={"grade": 0, "reviewed_at": "2030-01-02T00:00:00Z"})

    response = client.post(f"/review/{card['id']}/undo")

    assert response.status_code == 200, response.text
    rewound = response.json()
    assert rewound["repetition_count"] == first["card"]["repetition_count"]
    assert rewound["next_review_at"] == first["card"]["next_review_at"]

    client.post(f"/review/{card['id']}/undo")
    assert client.post(f"/review/{card['id']}/undo").status_code == 409


def test_generated_import_and_lecture_cascade(client):
    response = client.post(
        "/flashcards/generated",
        json={
            "lecture_id": "lec-7",
            "owner_id": "user-1",
            "cards": [
                {"question": "Define osmosis", "answer": "Diffusion of water across a membrane"},
                {"question": "Define entropy", "answer": "Disorder", "difficulty": "hard"},
            ],
        },
    )
    assert response.status_code == 201, response.text
    cards = response.json()
    assert all(card["is_auto_generated"] for card in cards)
    assert cards[1]["difficulty"] == "hard"

    listed = client.get("/flashcards", params={"lecture_id": "lec-7"}).json()
    assert len(listed) == 2

    deleted = client.delete("/flashcards", params={"lecture_id": "lec-7"}).json()
    assert deleted["deleted"] == 2
    assert client.get("/flashcards", params={"lecture_id": "lec-7"}).json() == []


def test_tutor_card_does_not_need_lecture(client):
    response = client.post(
        "/flashcards",
        json={
            "question": "What is a derivative?",
            "answer": "Instantaneous rate of change",
            "source": "tutor",
            "message_id": "msg-3",
            "source_content": "Tutor explanation",
        },
    )
    assert response.status_code == 201, response.text
    assert response.json()["source"] == "tutor"

    missing_lecture = client.post("/flashcards", json={"question": "Q", "answer": "A"})
    assert missing_lecture.status_code == 422


def test_edit_keeps_schedule(client):
    card = _create(client)
    client.post(f"/review/{card['id']}", json={"grade": 5})

    response = client.patch(f"/flashcards/{card['id']}", json={"answer": "The mitochondrion"})

    assert response.status_code == 200
    edited = response.json()
    assert edited["answer"] == "The mitochondrion"
    assert edited["repetition_count"] == 1
    assert client.delete(f"/flashcards/{card['id']}").status_code == 204
    assert client.get(f"/flashcards/{card['id']}").status_code == 404


def test_owner_stats(client):
    first = _create(client)
    _create(client, question="Second")
    client.post(f"/review/{first['id']}", json={"grade": 5, "reviewed_at": "2030-01-01T00:00:00Z"})
    client.post(f"/review/{first['id']}", json={"grade": 2, "reviewed_at": "2030-01-02T00:00:00Z"})

    stats = client.get("/stats/user-1").json()

    assert stats["total_cards"] == 2
    assert stats["due_now"] == 1
    assert stats["phases"] == {"new": 1, "learning": 1, "reviewing": 0}
    assert stats["total_reviews"] == 2
    assert stats["grades"]["5"] == 1
    assert stats["success_rate"] == 50.0


def test_due_limit_is_capped(client, monkeypatch):
    monkeypatch.setenv("REVIEW_MAX_LIMIT", "2")
    for index in range(3):
        _create(client, question=f"Q{index}")

    assert len(client.get("/review/due", params={"owner_id": "user-1"}).json()) == 2
    assert len(client.get("/review/due", params={"owner_id": "user-1", "limit": 1}).json()) == 1
    assert client.get("/review/due", params={"owner_id": "user-1", "limit": -1}).status_code == 422


def test_repeated_perfect_reviews_stay_at_interval_cap(client):
    card = _create(client)
    with database.get_conn() as conn:
        conn.execute(
            "UPDATE flashcards SET repetition_count = 12, interval_days = 30000, easiness_factor = 3.5 WHERE id = ?",
            (card["id"],),
        )
        conn.commit()

    for _ in range(5):
        response = client.post(f"/review/{card['id']}", json={"grade": 5})
        assert response.status_code == 200, response.text
        assert response.json()["card"]["interval_days"] == MAX_INTERVAL_DAYS


def test_lecture_delete_keeps_tutor_cards(client):
    lecture_card = _create(client, lecture_id="lec-9")
    tutor = client.post(
        "/flashcards",
        json={"question": "Q", "answer": "A", "source": "tutor", "lecture_id": "lec-9", "message_id": "msg-1"},
    ).json()

    deleted = client.delete("/flashcards", params={"lecture_id": "lec-9"}).json()

    assert deleted["deleted"] == 1
    assert client.get(f"/flashcards/{lecture_card['id']}").status_code == 404
    kept = client.get(f"/flashcards/{tutor['id']}")
    assert kept.status_code == 200
    assert kept.json()["lecture_id"] is None


@pytest.mark.parametrize("payload", [{"question": "   "}, {"answer": "\t"}])
def test_edit_rejects_blank_content(client, payload):
    card = _create(client)

    response = client.patch(f"/flashcards/{card['id']}", json=payload)

    assert response.status_code == 422
    assert client.get(f"/flashcards/{card['id']}").json()["question"] == card["question"]
