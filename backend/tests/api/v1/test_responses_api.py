"""
Tests for endpoints addressing a single saved answer or video.
"""
import io

import pytest

from app.models import QuestionResponse, VideoResponse

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 32


@pytest.fixture
def psychology_test(client, auth_headers, psychology_templates):
    return client.post(
        "/v1/tests", json={"test_type": "psychology"}, headers=auth_headers
    ).json()


@pytest.fixture
def saved_response(client, auth_headers, psychology_test):
    test_id = psychology_test["test"]["id"]
    snapshot_id = psychology_test["questions"][0]["id"]
    response = client.post(
        f"/v1/tests/{test_id}/answers",
        json={"answers": [{"question_snapshot_id": snapshot_id, "selected_answers": ["A"]}]},
        headers=auth_headers,
    )
    return response.json()[0]


@pytest.fixture
def math_test(client, auth_headers, math_question_group):
    return client.post("/v1/tests", json={"test_type": "math"}, headers=auth_headers).json()


@pytest.fixture
def uploaded_video(client, auth_headers, math_test):
    response = client.post(
        f"/v1/tests/{math_test['test']['id']}/videos",
        files={"file": ("answer.mp4", io.BytesIO(MP4_BYTES), "video/mp4")},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


def _submit(client, headers, test_id):
    client.post(f"/v1/tests/{test_id}/start", headers=headers)
    return client.post(f"/v1/tests/{test_id}/submit", headers=headers)


class TestResponseEndpoints:
    def test_get_response(self, client, auth_headers, saved_response):
        response = client.get(f"/v1/responses/{saved_response['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["selected_answers"] == ["A"]

    def test_get_missing_response(self, client, auth_headers):
        response = client.get("/v1/responses/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Response not found."

    def test_get_response_of_other_candidate(
        self, client, other_auth_headers, saved_response
    ):
        response = client.get(
            f"/v1/responses/{saved_response['id']}", headers=other_auth_headers
        )

        assert response.status_code == 403

    def test_update_response(self, client, auth_headers, saved_response):
        response = client.put(
            f"/v1/responses/{saved_response['id']}",
            json={"selected_answers": ["C", "B"], "response_time_ms": 900},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["selected_answers"] == ["C", "B"]
        assert response.json()["response_time_ms"] == 900

    def test_delete_response(self, client, auth_headers, db_session, saved_response):
        response = client.delete(
            f"/v1/responses/{saved_response['id']}", headers=auth_headers
        )

        assert response.status_code == 204
        assert db_session.query(QuestionResponse).count() == 0

    def test_delete_response_of_other_candidate(
        self, client, other_auth_headers, db_session, saved_response
    ):
        response = client.delete(
            f"/v1/responses/{saved_response['id']}", headers=other_auth_headers
        )

        assert response.status_code == 403
        assert db_session.query(QuestionResponse).count() == 1

    def test_frozen_after_submission(
        self, client, auth_headers, psychology_test, saved_response
    ):
        _submit(client, auth_headers, psychology_test["test"]["id"])

        update = client.put(
            f"/v1/responses/{saved_response['id']}",
            json={"selected_answers": ["B"]},
            headers=auth_headers,
        )
        delete = client.delete(
            f"/v1/responses/{saved_response['id']}", headers=auth_headers
        )

        assert update.status_code == 400
        assert delete.status_code == 400


class TestVideoEndpoints:
    def test_get_video(self, client, auth_headers, uploaded_video):
        response = client.get(f"/v1/videos/{uploaded_video['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["question_number"] == 1

    def test_get_video_of_other_candidate(
        self, client, other_auth_headers, uploaded_video
    ):
        response = client.get(
            f"/v1/videos/{uploaded_video['id']}", headers=other_auth_headers
        )

        assert response.status_code == 403

    def test_video_url(self, client, auth_headers, uploaded_video):
        response = client.get(
            f"/v1/videos/{uploaded_video['id']}/url", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["url"].startswith("memory://blobs/")
        assert data["expires_in_seconds"] > 0

    def test_delete_video(
        self, client, auth_headers, db_session, blob_storage, uploaded_video
    ):
        response = client.delete(
            f"/v1/videos/{uploaded_video['id']}", headers=auth_headers
        )

        assert response.status_code == 204
        assert db_session.query(VideoResponse).count() == 0
        assert len(blob_storage) == 0

    def test_delete_video_of_other_candidate(
        self, client, other_auth_headers, blob_storage, uploaded_video
    ):
        response = client.delete(
            f"/v1/videos/{uploaded_video['id']}", headers=other_auth_headers
        )

        assert response.status_code == 403
        assert len(blob_storage) == 1

    def test_delete_video_after_submission(
        self, client, auth_headers, blob_storage, math_test, uploaded_video
    ):
        _submit(client, auth_headers, math_test["test"]["id"])

        response = client.delete(
            f"/v1/videos/{uploaded_video['id']}", headers=auth_headers
        )

        assert response.status_code == 400
        assert len(blob_storage) == 1

    def test_missing_video(self, client, auth_headers):
        response = client.get("/v1/videos/missing/url", headers=auth_headers)

        assert response.status_code == 404
