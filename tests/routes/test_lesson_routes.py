from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from lessonbook.core.ulid_helper import generate_ulid

BASE = "/api/v1/lessons"


class TestListLessons:
    def test_envelope_and_pagination(self, client: TestClient, make_lesson) -> None:
        make_lesson(topic="Math", image="math.jpg")
        make_lesson(topic="Art", spaces=None, space=2)

        response = client.get(BASE, params={"limit": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}
        lesson = body["data"]["lessons"][0]
        assert lesson["topic"] == "Art"
        assert lesson["spaces"] == lesson["space"] == 2
        assert lesson["available"] is True
        assert lesson["imageUrl"] == "/images/default-lesson.jpg"

    def test_filters_and_sorting(self, client: TestClient, make_lesson) -> None:
        make_lesson(topic="Math", price=100, spaces=5)
        make_lesson(topic="Music", price=50, spaces=1)
        make_lesson(topic="Art", price=75, spaces=3)

        response = client.get(BASE, params={"sortBy": "price", "order": "desc", "minSpaces": 2})

        assert [lesson["topic"] for lesson in response.json()["data"]["lessons"]] == ["Math", "Art"]

    def test_invalid_query_is_400(self, client: TestClient) -> None:
        response = client.get(BASE, params={"sortBy": "rating", "order": "sideways"})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"] == "Invalid sort field, Order must be asc or desc"

    def test_huge_min_spaces_is_400(self, client: TestClient) -> None:
        response = client.get(BASE, params={"minSpaces": str(10**30)})

        assert response.status_code == 400
        assert response.json()["message"] == "Min spaces must be at most 2147483647"


class TestLessonById:
    def test_get_lesson(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson(topic="Math", price="12.5")

        response = client.get(f"{BASE}/{lesson.id}")

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 12.5

    def test_malformed_id_is_400(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/507f1f77bcf86cd799439011")

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"] == "Invalid lesson ID"
        assert body["code"] == "INVALID_ID"

    def test_unknown_id_is_404(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/{generate_ulid()}")

        assert response.status_code == 404
        assert response.json()["status"] == "fail"

    def test_update(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson(spaces=5)

        response = client.put(f"{BASE}/{lesson.id}", json={"spaces": 7, "location": "Mill Hill"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["spaces"] == data["space"] == 7
        assert data["location"] == "Mill Hill"

    def test_update_with_empty_body_is_400(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson()

        response = client.put(f"{BASE}/{lesson.id}", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "No update data provided"

    def test_update_rejects_negative_price(self, client: TestClient, make_lesson) -> None:
        lesson = make_lesson()

        response = client.put(f"{BASE}/{lesson.id}", json={"price": -1})

        assert response.status_code == 400
        assert response.json()["message"] == "Price must be a positive number"

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"spaces": 10**30}, "Spaces must be at most 2147483647"),
            ({"price": 1e20}, "Price must be at most 99999999.99"),
        ],
    )
    def test_update_rejects_values_beyond_store_range(
        self, client: TestClient, make_lesson, payload, message: str
    ) -> None:
        lesson = make_lesson(spaces=3)

        response = client.put(f"{BASE}/{lesson.id}", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == message
        assert client.get(f"{BASE}/{lesson.id}").json()["data"]["spaces"] == 3


class TestLessonStats:
    def test_empty_catalog(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/stats/overview")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalLessons"] == 0
        assert data["percentageAvailable"] == 0
        assert data["byTopic"] == []
