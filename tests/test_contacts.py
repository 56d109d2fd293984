"""
Public contact form tests.
"""
import pytest

from app.models.contact import Contact
from app.models.enums import ContactStatus


pytestmark = pytest.mark.integration


def _payload(**overrides):
    payload = {
        "first_name": "Lena",
        "last_name": "Lead",
        "email": "lena@example.com",
        "company": "Acme",
        "project_type": "website",
        "message": "We need a new marketing site.",
        "privacy": True,
    }
    payload.update(overrides)
    return payload


def test_submit_contact(client, db_session):
    response = client.post("/api/v1/contact", json=_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Contact request received successfully"

    contact = db_session.get(Contact, body["id"])
    assert contact.status == ContactStatus.NEW
    assert contact.email == "lena@example.com"
    assert contact.assigned_to is None


def test_privacy_must_be_accepted(client, db_session):
    response = client.post("/api/v1/contact", json=_payload(privacy=False))

    assert response.status_code == 422
    assert db_session.query(Contact).count() == 0


def test_invalid_email_rejected(client):
    response = client.post("/api/v1/contact", json=_payload(email="not-an-email"))
    assert response.status_code == 422


def test_unknown_fields_rejected(client):
    response = client.post("/api/v1/contact", json=_payload(status="completed"))
    assert response.status_code == 422
