"""
Integration Tests for the HTTP API
Drives the FastAPI app end to end through httpx against an in-memory database.
"""
import sys

import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from farmportal.core.config import settings
from farmportal.core.security import create_admin_session_token, get_password_hash
from farmportal.services.email_validation_service import EmailValidationService

validation_module = sys.modules[EmailValidationService.__module__]

PROFILE = {
    "firstName": "Ada",
    "surname": "Obi",
    "gender": "female",
    "state": "Kaduna",
}


async def create_active_sponsor(client, admin_headers, name="CSS Farms 2024"):
    response = await client.post(
        "/api/sponsors", json={"name": name, "isActive": True}, headers=admin_headers
    )
    assert response.status_code == 201
    return response.json()


def session_cookie(response) -> dict:
    """Replay the cookie a login just set, without relying on the client's cookie jar"""
    return {"Cookie": response.headers["set-cookie"].split(";")[0]}


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAdminSession:

    @pytest.mark.asyncio
    async def test_login_sets_http_only_cookie(self, client):
        response = await client.post(
            "/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Login successful",
            "user": {"email": ADMIN_EMAIL, "role": "admin"},
        }
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"{settings.ADMIN_COOKIE_NAME}=")
        assert "httponly" in cookie.lower()

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client):
        response = await client.post(
            "/api/admin/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_me_with_session(self, client, admin_headers):
        response = await client.get("/api/admin/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"email": ADMIN_EMAIL, "role": "admin"}

    @pytest.mark.asyncio
    async def test_me_without_session(self, client):
        response = await client.get("/api/admin/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_me_with_bad_session(self, client):
        response = await client.get(
            "/api/admin/me", headers={"Cookie": f"{settings.ADMIN_COOKIE_NAME}=garbage"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Session expired"

    @pytest.mark.asyncio
    async def test_logout(self, client, admin_headers):
        response = await client.post("/api/admin/logout", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out"}

    @pytest.mark.asyncio
    async def test_admin_routes_require_session(self, client):
        for path in ("/api/rooms", "/api/tags", "/api/allocations/summary", "/api/ids"):
            response = await client.get(path)
            assert response.status_code == 401, path


class TestRegistration:

    @pytest.mark.asyncio
    async def test_full_registration(self, client, admin_headers):
        sponsor = await create_active_sponsor(client, admin_headers)

        started = await client.post("/api/register/step1", json={
            "email": "Ada@CSSFarms.org",
            "password": "secret123",
            "confirmPassword": "secret123",
        })
        assert started.status_code == 200
        dev_code = started.json()["devCode"]

        verified = await client.post(
            "/api/register/verify", json={"email": "ada@cssfarms.org", "code": dev_code}
        )
        assert verified.status_code == 200

        completed = await client.post(
            "/api/register/complete", json={**PROFILE, "email": "ada@cssfarms.org"}
        )
        assert completed.status_code == 200
        body = completed.json()
        assert body["message"] == "Registration completed successfully"
        assert body["trainee"]["email"] == "ada@cssfarms.org"
        assert body["trainee"]["tagNumber"] == "pending"

        login = await client.post(
            "/api/trainees/login", json={"email": "ada@cssfarms.org", "password": "secret123"}
        )
        assert login.status_code == 200
        me = await client.get("/api/trainees/me", headers=session_cookie(login))
        assert me.status_code == 200
        assert me.json()["sponsorId"] == sponsor["id"]
        assert me.json()["allocationStatus"] == "pending"

    @pytest.mark.asyncio
    async def test_wrong_code(self, client):
        await client.post("/api/register/step1", json={
            "email": "ada@cssfarms.org",
            "password": "secret123",
            "confirmPassword": "secret123",
        })

        response = await client.post(
            "/api/register/verify", json={"email": "ada@cssfarms.org", "code": "000000"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_password_mismatch(self, client):
        response = await client.post("/api/register/step1", json={
            "email": "ada@cssfarms.org",
            "password": "secret123",
            "confirmPassword": "secret999",
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Passwords do not match"

    @pytest.mark.asyncio
    async def test_request_validation_shape(self, client):
        response = await client.post("/api/register/verify", json={"email": "ada@cssfarms.org"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation error"
        assert isinstance(body["errors"], list)

    @pytest.mark.asyncio
    async def test_email_validate(self, client, monkeypatch):
        async def fake_lookup(domain, timeout=None):
            return [f"mx1.{domain}"]
        monkeypatch.setattr(validation_module, "lookup_mx", fake_lookup)

        valid = await client.post("/api/email/validate", json={"email": "new@cssfarms.org"})
        invalid = await client.post("/api/email/validate", json={"email": "a@b"})

        assert valid.status_code == 200
        assert valid.json()["deliverable"] is True
        assert invalid.status_code == 400
        assert invalid.json()["message"] == "Invalid email format"


class TestTraineeSession:

    @pytest.fixture
    async def trainee(self, make_trainee):
        return await make_trainee(email="ada@cssfarms.org", password_hash=get_password_hash("secret123"))

    @pytest.mark.asyncio
    async def test_login_and_me(self, client, trainee):
        login = await client.post(
            "/api/trainees/login", json={"email": "ADA@cssfarms.org", "password": "secret123"}
        )

        assert login.status_code == 200
        assert login.json()["message"] == "Login successful"
        assert login.json()["trainee"]["id"] == trainee.id
        cookie = login.headers["set-cookie"]
        assert cookie.startswith(f"{settings.TRAINEE_COOKIE_NAME}=")
        assert "httponly" in cookie.lower()

        me = await client.get("/api/trainees/me", headers=session_cookie(login))
        assert me.status_code == 200
        assert me.json()["email"] == "ada@cssfarms.org"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, trainee):
        response = await client.post(
            "/api/trainees/login", json={"email": "ada@cssfarms.org", "password": "not-my-password"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unknown_email(self, client):
        response = await client.post(
            "/api/trainees/login", json={"email": "nobody@cssfarms.org", "password": "secret123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_me_requires_session(self, client, trainee):
        response = await client.get("/api/trainees/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_admin_cookie_is_not_a_trainee_session(self, client, trainee):
        token = create_admin_session_token(ADMIN_EMAIL)
        response = await client.get(
            "/api/trainees/me", headers={"Cookie": f"{settings.TRAINEE_COOKIE_NAME}={token}"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Session expired"

    @pytest.mark.asyncio
    async def test_email_lookup_is_gone(self, client, trainee):
        response = await client.get("/api/trainees/me/ada@cssfarms.org")

        assert response.status_code in (401, 404)


class TestSponsors:

    @pytest.mark.asyncio
    async def test_activation_is_exclusive(self, client, admin_headers):
        first = await create_active_sponsor(client, admin_headers, "First")
        second = await client.post("/api/sponsors", json={"name": "Second"}, headers=admin_headers)

        response = await client.patch(
            f"/api/sponsors/{second.json()['id']}", json={"isActive": True}, headers=admin_headers
        )
        assert response.status_code == 200

        active = await client.get("/api/sponsors/active")
        assert active.json()["id"] == second.json()["id"]
        sponsors = {s["id"]: s["isActive"] for s in (await client.get("/api/sponsors")).json()}
        assert sponsors[first["id"]] is False

    @pytest.mark.asyncio
    async def test_no_active_sponsor(self, client):
        response = await client.get("/api/sponsors/active")

        assert response.status_code == 200
        assert response.json() is None


class TestAllocation:

    @pytest.mark.asyncio
    async def test_sync_allocates(self, client, admin_headers, make_trainee):
        trainee = await make_trainee()
        room = await client.post(
            "/api/rooms",
            json={"roomNumber": "Room-01", "block": "BlockA", "bedSpace": "1"},
            headers=admin_headers,
        )
        assert room.status_code == 201
        assert room.json()["capacity"] == 1
        tags = await client.post("/api/tags", json={"tagNumbers": ["T-001", "T-001", " "]}, headers=admin_headers)
        assert len(tags.json()) == 1

        response = await client.post("/api/allocations/sync", headers=admin_headers)

        assert response.status_code == 200
        result = response.json()
        assert set(result) == {
            "allocated", "noRooms", "noTags", "roomsUpdated", "tagsUpdated", "inconsistencies", "summary"
        }
        assert result["allocated"] == 1
        assert result["summary"]["allocatedTrainees"] == 1

        allocated = await client.get(
            "/api/allocations/trainees", params={"status": "allocated"}, headers=admin_headers
        )
        assert [t["id"] for t in allocated.json()] == [trainee.id]
        assert allocated.json()[0]["tagNumber"] == "T-001"
        assert allocated.json()[0]["roomNumber"] == "Room-01"

    @pytest.mark.asyncio
    async def test_single_room_allocation_without_rooms(self, client, admin_headers, make_trainee):
        trainee = await make_trainee()

        response = await client.post(
            f"/api/allocations/trainees/{trainee.id}/room", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["allocated"] is False

    @pytest.mark.asyncio
    async def test_maintenance_endpoints(self, client, admin_headers, make_trainee):
        await make_trainee()

        for path in ("/api/allocations/cleanup-rooms", "/api/allocations/cleanup-tags",
                     "/api/allocations/fix-status", "/api/allocations/migrate"):
            response = await client.post(path, headers=admin_headers)
            assert response.status_code == 200, path

        summary = await client.get("/api/allocations/summary", headers=admin_headers)
        assert summary.json()["totalTrainees"] == 1


class TestGeneratedIds:

    @pytest.mark.asyncio
    async def test_staff_id_lifecycle(self, client, admin_headers):
        generated = await client.post(
            "/api/ids/generate", json={"type": "staff", "count": 2}, headers=admin_headers
        )
        assert generated.status_code == 201
        assert generated.json()["ids"] == ["ST-0C0S0S1", "ST-0C0S0S2"]

        check = await client.post("/api/ids/ST-0C0S0S1/validate", json={"email": "musa@cssfarms.org"})
        assert check.json()["isValid"] is True

        activated = await client.post("/api/ids/ST-0C0S0S1/activate", json={"email": "musa@cssfarms.org"})
        assert activated.json()["status"] == "assigned"
        assert activated.json()["assignedTo"] == "musa@cssfarms.org"

        taken = await client.post("/api/ids/ST-0C0S0S1/validate", json={"email": "other@cssfarms.org"})
        assert taken.json()["isValid"] is False

        finalized = await client.post("/api/ids/ST-0C0S0S1/finalize", json={
            "email": "musa@cssfarms.org",
            "firstName": "Musa",
            "surname": "Bello",
            "department": "Agronomy",
        })
        assert finalized.status_code == 200
        assert finalized.json()["person"]["department"] == "Agronomy"

        stats = await client.get("/api/ids/statistics", headers=admin_headers)
        assert stats.json()["activated"] == 1
        assert stats.json()["available"] == 1

    @pytest.mark.asyncio
    async def test_generate_count_bounds(self, client, admin_headers):
        response = await client.post(
            "/api/ids/generate", json={"type": "staff", "count": 101}, headers=admin_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_id(self, client, admin_headers):
        response = await client.get("/api/ids/ST-0C0S0S9", headers=admin_headers)

        assert response.status_code == 404


class TestMessaging:

    @pytest.mark.asyncio
    async def test_message_and_notifications(self, client):
        sent = await client.post("/api/messages", json={
            "fromId": "trainee-1",
            "fromName": "Ada Obi",
            "fromEmail": "ada@cssfarms.org",
            "fromTagNumber": "T-001",
            "toId": "RP-0C0S0S1",
            "toName": "Musa Bello",
            "toEmail": "musa@cssfarms.org",
            "subject": "Soil samples",
            "message": "When do we collect them?",
        })
        assert sent.status_code == 201

        count = await client.get("/api/notifications/unread-count", params={"userId": "RP-0C0S0S1"})
        assert count.json() == {"count": 1}

        notifications = await client.get("/api/notifications", params={"userId": "RP-0C0S0S1"})
        notification_id = notifications.json()[0]["id"]
        await client.post(f"/api/notifications/{notification_id}/read")

        count = await client.get("/api/notifications/unread-count", params={"userId": "RP-0C0S0S1"})
        assert count.json() == {"count": 0}


class TestAnnouncements:

    @pytest.mark.asyncio
    async def test_admin_reply_notifies_trainee(self, client, admin_headers, make_trainee):
        trainee = await make_trainee()
        announcement = await client.post(
            "/api/announcements", json={"title": "Field trip", "message": "Bring boots"}, headers=admin_headers
        )
        announcement_id = announcement.json()["id"]

        reply = await client.post(
            f"/api/announcements/{announcement_id}/replies",
            json={"message": "Is lunch provided?", "traineeId": trainee.id},
        )
        assert reply.status_code == 201

        answer = await client.post(
            f"/api/announcements/{announcement_id}/replies/admin",
            json={"message": "Yes.", "replyToId": reply.json()["id"]},
            headers=admin_headers,
        )
        assert answer.status_code == 201
        assert answer.json()["fromRole"] == "admin"

        count = await client.get("/api/notifications/unread-count", params={"userId": trainee.id})
        assert count.json() == {"count": 1}

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, client):
        response = await client.post("/api/announcements", json={"title": "x", "message": "y"})

        assert response.status_code == 401


class TestExams:

    @pytest.mark.asyncio
    async def test_take_exam(self, client, admin_headers, make_trainee):
        trainee = await make_trainee()
        exam = await client.post(
            "/api/exams", json={"title": "Crop Science", "duration": 30}, headers=admin_headers
        )
        exam_id = exam.json()["id"]
        question = await client.post(f"/api/exams/{exam_id}/questions", json={
            "questionText": "Which crop is a cereal?",
            "questionType": "mcq",
            "options": ["Maize", "Cassava"],
            "correctAnswer": "Maize",
            "points": 2,
        }, headers=admin_headers)
        assert question.status_code == 201

        public = await client.get(f"/api/exams/{exam_id}/questions/public")
        assert "correctAnswer" not in public.json()[0]

        attempt = await client.post(f"/api/exams/{exam_id}/start", json={"traineeId": trainee.id})
        assert attempt.status_code == 201

        submitted = await client.post(
            f"/api/exams/attempts/{attempt.json()['id']}/submit",
            json={"answers": [{"questionId": question.json()["id"], "answer": "maize"}]},
        )
        assert submitted.json()["status"] == "submitted"
        assert submitted.json()["score"] == 2


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email(self, client):
        response = await client.post("/api/auth/forgot-password", json={"email": "nobody@cssfarms.org"})

        assert response.status_code == 404
        assert response.json()["message"] == "No account found with this email address"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get("/api/auth/verify-reset-token/not-a-token")

        assert response.status_code == 400


class TestCertificates:

    @pytest.mark.asyncio
    async def test_download_listed_certificate(self, client, admin_headers, make_trainee):
        trainee = await make_trainee(first_name="Ada", surname="Obi")

        listed = await client.get("/api/certificates/recipients", headers=admin_headers)
        assert listed.status_code == 200
        recipient = listed.json()[0]
        assert recipient["id"] == trainee.id
        assert recipient["role"] == "trainee"

        response = await client.get(
            f"/api/certificates/trainee/{trainee.id}",
            params={"certificateId": recipient["certificateId"]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert response.headers["content-disposition"] == (
            f'attachment; filename="certificate-Ada-Obi-{recipient["certificateId"]}.html"'
        )
        assert f"Certificate ID: {recipient['certificateId']}" in response.text

    @pytest.mark.asyncio
    async def test_certificates_require_admin(self, client):
        response = await client.get("/api/certificates/recipients")

        assert response.status_code == 401
