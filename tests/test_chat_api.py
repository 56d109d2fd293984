"""
HTTP tests for the chat endpoints, including relay fan-out.
"""
import pytest

from app.chat import chat_relay
from app.chat.models import ChatSession


pytestmark = pytest.mark.integration


@pytest.fixture
def subscriber():
    """A relay connection registered by the test itself."""
    queue = chat_relay.register("test-subscriber")
    yield queue
    chat_relay.disconnect("test-subscriber")


def _create_session(client, headers, **body):
    response = client.post("/api/v1/chat/sessions", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_support_conversation_end_to_end(
    client, client_headers, support_headers, client_user, support_user, subscriber
):
    session = _create_session(client, client_headers)
    assert session["status"] == "active"
    assert session["closed_at"] is None
    assert session["client_id"] == str(client_user.id)

    chat_relay.join("test-subscriber", session["id"])

    assigned = client.post(
        f"/api/v1/chat/sessions/{session['id']}/assign",
        json={"support_id": str(support_user.id)},
        headers=support_headers,
    )
    assert assigned.status_code == 200
    assert assigned.json()["support_id"] == str(support_user.id)
    assert subscriber.get_nowait()["type"] == "support-joined"

    sent = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "Where is my invoice?"},
        headers=client_headers,
    )
    assert sent.status_code == 201
    message = sent.json()
    assert message["is_read"] is False
    assert message["receiver_id"] == str(support_user.id)

    event = subscriber.get_nowait()
    assert event["type"] == "new-message"
    assert event["message"]["id"] == message["id"]
    assert event["message"]["content"] == "Where is my invoice?"

    unread = client.get("/api/v1/chat/unread-count", headers=support_headers)
    assert unread.json() == {"unread": 1}

    marked = client.post(f"/api/v1/chat/sessions/{session['id']}/read", headers=support_headers)
    assert marked.json() == {"marked": 1}
    assert client.get("/api/v1/chat/unread-count", headers=support_headers).json() == {"unread": 0}

    closed = client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)
    assert closed.status_code == 200
    assert closed.json()["status"] == "closed"
    assert closed.json()["closed_at"] is not None
    assert subscriber.get_nowait()["type"] == "session-closed"

    history = client.get(f"/api/v1/chat/sessions/{session['id']}/messages", headers=client_headers)
    assert [m["id"] for m in history.json()] == [message["id"]]


def test_message_history_in_send_order(client, client_headers):
    session = _create_session(client, client_headers)
    for text in ("first", "second", "third"):
        client.post(
            f"/api/v1/chat/sessions/{session['id']}/messages",
            json={"content": text},
            headers=client_headers,
        )

    history = client.get(f"/api/v1/chat/sessions/{session['id']}/messages", headers=client_headers).json()
    assert [m["content"] for m in history] == ["first", "second", "third"]
    assert [m["id"] for m in history] == sorted(m["id"] for m in history)


def test_empty_message_rejected(client, client_headers, subscriber):
    session = _create_session(client, client_headers)
    chat_relay.join("test-subscriber", session["id"])

    response = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "   "},
        headers=client_headers,
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_INPUT"
    assert subscriber.empty()
    history = client.get(f"/api/v1/chat/sessions/{session['id']}/messages", headers=client_headers)
    assert history.json() == []


def test_message_to_unknown_session(client, client_headers):
    response = client.post(
        "/api/v1/chat/sessions/4040/messages",
        json={"content": "hello"},
        headers=client_headers,
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_message_to_closed_session(client, client_headers):
    session = _create_session(client, client_headers)
    client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)

    response = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "hello?"},
        headers=client_headers,
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_STATE"


def test_close_twice_conflicts(client, client_headers):
    session = _create_session(client, client_headers)
    first = client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)
    second = client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error_code"] == "INVALID_STATE"


def test_other_client_cannot_read_session(client, client_headers, other_client_headers):
    session = _create_session(client, client_headers)

    for path in (
        f"/api/v1/chat/sessions/{session['id']}",
        f"/api/v1/chat/sessions/{session['id']}/messages",
    ):
        response = client.get(path, headers=other_client_headers)
        assert response.status_code == 403
        assert response.json()["error_code"] == "UNAUTHORIZED"

    response = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "sneaky"},
        headers=other_client_headers,
    )
    assert response.status_code == 403


def test_client_id_is_taken_from_token(client, client_headers, other_client_user):
    response = client.post(
        "/api/v1/chat/sessions",
        json={"client_id": str(other_client_user.id)},
        headers=client_headers,
    )
    assert response.status_code == 422


def test_list_sessions_scopes(client, client_headers, other_client_headers, support_headers):
    mine = _create_session(client, client_headers)
    _create_session(client, other_client_headers)

    own = client.get("/api/v1/chat/sessions", headers=client_headers).json()
    assert own["total"] == 1
    assert own["sessions"][0]["id"] == mine["id"]

    # Clients cannot widen the scope
    widened = client.get("/api/v1/chat/sessions?scope=all", headers=client_headers).json()
    assert widened["total"] == 1

    active = client.get("/api/v1/chat/sessions?scope=active", headers=support_headers).json()
    assert active["total"] == 2


def test_staff_cannot_open_sessions(client, support_headers):
    response = client.post("/api/v1/chat/sessions", json={}, headers=support_headers)
    assert response.status_code == 403


def test_support_can_only_assign_themselves(client, client_headers, support_headers, admin_user):
    session = _create_session(client, client_headers)
    response = client.post(
        f"/api/v1/chat/sessions/{session['id']}/assign",
        json={"support_id": str(admin_user.id)},
        headers=support_headers,
    )
    assert response.status_code == 403


def test_client_cannot_assign_support(client, client_headers, support_user):
    session = _create_session(client, client_headers)
    response = client.post(
        f"/api/v1/chat/sessions/{session['id']}/assign",
        json={"support_id": str(support_user.id)},
        headers=client_headers,
    )
    assert response.status_code == 403


def test_mark_single_message_read(client, client_headers, support_headers, support_user):
    session = _create_session(client, client_headers)
    client.post(
        f"/api/v1/chat/sessions/{session['id']}/assign",
        json={"support_id": str(support_user.id)},
        headers=support_headers,
    )
    message = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "hi"},
        headers=client_headers,
    ).json()

    first = client.post(f"/api/v1/chat/messages/{message['id']}/read", headers=support_headers)
    second = client.post(f"/api/v1/chat/messages/{message['id']}/read", headers=support_headers)
    assert first.status_code == 200
    assert first.json()["is_read"] is True
    assert second.json()["is_read"] is True


def test_ticket_flow(client, client_headers, support_headers):
    response = client.post(
        "/api/v1/chat/tickets",
        json={"subject": "Broken form", "description": "The contact form errors out", "priority": "high"},
        headers=client_headers,
    )
    assert response.status_code == 201
    ticket = response.json()
    assert ticket["session"]["subject"] == "Broken form"
    assert ticket["session"]["priority"] == "high"
    assert ticket["message"]["session_id"] == ticket["session"]["id"]

    listed = client.get("/api/v1/chat/tickets", headers=support_headers).json()
    assert [t["id"] for t in listed] == [ticket["session"]["id"]]


def test_invalid_priority_rejected(client, client_headers):
    response = client.post(
        "/api/v1/chat/tickets",
        json={"subject": "x", "description": "y", "priority": "urgent"},
        headers=client_headers,
    )
    assert response.status_code == 422


def test_requires_authentication(client):
    response = client.get("/api/v1/chat/sessions")
    assert response.status_code == 401


def test_agent_sees_live_message_then_session_closes(
    client, client_headers, support_headers, client_user, subscriber
):
    session = _create_session(client, client_headers)
    # Agent B's live connection joins the session
    chat_relay.join("test-subscriber", session["id"])

    sent = client.post(
        f"/api/v1/chat/sessions/{session['id']}/messages",
        json={"content": "hello"},
        headers=client_headers,
    ).json()
    assert sent["is_read"] is False

    event = subscriber.get_nowait()
    assert event["type"] == "new-message"
    assert event["message"] == sent

    read = client.post(f"/api/v1/chat/messages/{sent['id']}/read", headers=support_headers)
    assert read.json()["is_read"] is True

    first_close = client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)
    assert first_close.json()["status"] == "closed"
    closed_at = first_close.json()["closed_at"]

    second_close = client.post(f"/api/v1/chat/sessions/{session['id']}/close", headers=client_headers)
    assert second_close.status_code == 409

    reloaded = client.get(f"/api/v1/chat/sessions/{session['id']}", headers=client_headers).json()
    assert reloaded["closed_at"] == closed_at


def test_health_echoes_request_id(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"] == "abc123"


def test_blank_ticket_leaves_no_session(client, db_session, client_headers):
    response = client.post(
        "/api/v1/chat/tickets",
        json={"subject": "Broken", "description": "   "},
        headers=client_headers,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_INPUT"

    assert db_session.query(ChatSession).count() == 0
    assert client.get("/api/v1/chat/tickets", headers=client_headers).json() == []
