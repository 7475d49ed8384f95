from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from lessonbook.core.ulid_helper import generate_ulid
from lessonbook.models import Lesson, Order

BASE = "/api/v1/orders"


def _payload(lesson_id: str, quantity: int = 1, name: str = "Ada Lovelace") -> dict:
    return {
        "name": name,
        "phone": "+44 20 7946 0000",
        "lessons": [{"lessonId": lesson_id, "quantity": quantity}],
    }


class TestCreateOrder:
    def test_created(self, client: TestClient, db: Session, make_lesson) -> None:
        lesson = make_lesson(topic="Math", spaces=3, price=10)

        response = client.post(BASE, json=_payload(lesson.id, 3))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        data = body["data"]
        assert data["totalAmount"] == 30
        assert data["status"] == "confirmed"
        assert data["paymentStatus"] == "pending"
        assert data["confirmationCode"] == data["id"][-8:].upper()
        assert data["lessons"][0] == {
            "lessonId": lesson.id,
            "topic": "Math",
            "location": "Hendon",
            "price": 10,
            "quantity": 3,
            "amount": 30,
        }
        db.expire_all()
        assert db.get(Lesson, lesson.id).spaces == 0

    def test_sold_out_is_409(self, client: TestClient, db: Session, make_lesson) -> None:
        lesson = make_lesson(topic="Math", spaces=0)

        response = client.post(BASE, json=_payload(lesson.id))

        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "fail"
        assert "Insufficient capacity" in body["message"]
        assert body["details"]["requested"] == 1
        db.expire_all()
        assert db.get(Lesson, lesson.id).spaces == 0

    def test_name_with_digits_rejected_before_store_access(
        self, client: TestClient, db: Session, make_lesson
    ) -> None:
        lesson = make_lesson(spaces=3)

        response = client.post(BASE, json=_payload(lesson.id, name="123"))

        assert response.status_code == 400
        assert response.json()["message"] == "Name must contain only letters and spaces"
        db.expire_all()
        assert db.get(Lesson, lesson.id).spaces == 3
        assert db.query(Order).count() == 0

    def test_aggregated_validation_message(self, client: TestClient) -> None:
        response = client.post(
            BASE,
            json={"name": "", "phone": "abc", "lessons": [{"lessonId": "bad", "quantity": 0}]},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == (
            "Name is required, Invalid phone format, Invalid lesson ID, Quantity must be at least 1"
        )
        assert len(body["errors"]) == 4

    def test_unknown_lesson_is_404(self, client: TestClient) -> None:
        missing = generate_ulid()

        response = client.post(BASE, json=_payload(missing))

        assert response.status_code == 404
        assert response.json()["message"] == f"Lesson not found: {missing}"


class TestReadOrders:
    def test_get_and_list(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson(spaces=5)
        created = client.post(BASE, json=_payload(lesson.id)).json()["data"]

        fetched = client.get(f"{BASE}/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["data"]["confirmationCode"] == created["confirmationCode"]

        listing = client.get(BASE, params={"status": "confirmed", "sortBy": "totalAmount"})
        assert listing.status_code == 200
        assert listing.json()["data"]["pagination"]["total"] == 1

    def test_malformed_order_id(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/not-an-id")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid order ID"

    def test_unknown_order(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/{generate_ulid()}")

        assert response.status_code == 404

    def test_invalid_sort(self, client: TestClient) -> None:
        response = client.get(BASE, params={"sortBy": "phone"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid sort field"

    def test_stats(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson(spaces=5, price=10)
        client.post(BASE, json=_payload(lesson.id, 2))

        response = client.get(f"{BASE}/stats/overview")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalOrders"] == 1
        assert data["totalRevenue"] == 20
        assert data["byStatus"] == {"confirmed": 1}
        assert len(data["dailyTrend"]) == 7
