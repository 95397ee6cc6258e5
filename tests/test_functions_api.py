"""
Tests for the privileged function endpoints under /functions/v1.
"""

import json
from datetime import date, datetime

import httpx
import pytest
from sqlalchemy import select

from inventory_server.core import settings
from inventory_server.core.auth_admin import AuthAdminClient, get_auth_admin
from inventory_server.core.email import EmailService, get_email_service
from inventory_server.main import app
from inventory_server.models import (
    AuditLog,
    Client,
    ClientInvoice,
    Device,
    DeviceAssignment,
    InviteRequest,
    MailTemplate,
    SubscriptionPlan,
)
from inventory_server.services.billing import generated_count, get_invoice_generator


def all_rows(run_db, model):
    async def _rows(db):
        result = await db.execute(select(model))
        return list(result.scalars().all())
    return run_db(_rows)


def test_preflight_returns_ok(client):
    response = client.options("/functions/v1/invite-user")
    assert response.status_code == 200
    assert response.text == "ok"


# =============================================================================
# generate-period-invoices
# =============================================================================


class TestGeneratePeriodInvoices:
    @pytest.fixture(autouse=True)
    def fake_generator(self):
        calls = []

        async def generate(db):
            calls.append(db)
            return 4

        app.dependency_overrides[get_invoice_generator] = lambda: generate
        return calls

    def test_without_configured_secret(self, client, monkeypatch, fake_generator):
        monkeypatch.setattr(settings, "CRON_SECRET", None)
        response = client.post("/functions/v1/generate-period-invoices")
        assert response.status_code == 200
        assert response.json() == {"generated": 4}
        assert len(fake_generator) == 1

    def test_wrong_secret_rejected(self, client, monkeypatch, fake_generator):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
        response = client.post(
            "/functions/v1/generate-period-invoices", headers={"x-cron-secret": "nope"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert fake_generator == []

    def test_matching_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
        response = client.post(
            "/functions/v1/generate-period-invoices", headers={"x-cron-secret": "s3cret"}
        )
        assert response.json() == {"generated": 4}

    def test_get_not_allowed(self, client):
        response = client.get("/functions/v1/generate-period-invoices")
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_generator_failure_is_internal_error(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", None)

        async def broken(db):
            raise RuntimeError("function generate_period_invoices() does not exist")

        app.dependency_overrides[get_invoice_generator] = lambda: broken
        response = client.post("/functions/v1/generate-period-invoices")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal error"}


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3), (0, 0), (None, 0), ("7", 0), (True, 0), (2.0, 2.0)],
)
def test_generated_count_coerces_non_numeric(value, expected):
    assert generated_count(value) == expected


# =============================================================================
# invite-user
# =============================================================================


class TestInviteUser:
    @pytest.fixture
    def admin_api(self):
        requests = []
        reply = {"status": 200, "body": {"id": "new-user-id"}}

        def handler(request):
            requests.append(request)
            return httpx.Response(reply["status"], json=reply["body"])

        admin = AuthAdminClient(
            base_url="https://auth.example.test/admin",
            service_key="service-key",
            transport=httpx.MockTransport(handler),
        )
        app.dependency_overrides[get_auth_admin] = lambda: admin
        return requests, reply

    def test_requires_token(self, client, admin_api):
        response = client.post("/functions/v1/invite-user", json={"email": "a@b.co"})
        assert response.status_code == 401

    def test_non_super_admin_forbidden(self, client, auth_headers, admin_api):
        response = client.post(
            "/functions/v1/invite-user",
            json={"email": "a@b.co"},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Only Super Admins can invite users"}
        assert admin_api[0] == []

    def test_email_required(self, client, auth_headers, admin_api):
        response = client.post(
            "/functions/v1/invite-user", json={"role": "admin"}, headers=auth_headers("super_admin")
        )
        assert response.status_code == 400
        assert response.json() == {"error": "email is required"}

    def test_invite_records_role_and_calls_admin_api(self, client, auth_headers, run_db, admin_api):
        requests, _ = admin_api
        response = client.post(
            "/functions/v1/invite-user",
            json={"email": "new@shop.io"},
            headers=auth_headers("super_admin"),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Invitation sent"}

        invites = all_rows(run_db, InviteRequest)
        assert [(i.email, i.role) for i in invites] == [("new@shop.io", "front_desk")]

        sent = requests[0]
        assert sent.url == "https://auth.example.test/admin/invite"
        assert sent.headers["apikey"] == "service-key"
        assert json.loads(sent.content)["email"] == "new@shop.io"

    def test_existing_user_message(self, client, auth_headers, admin_api):
        _, reply = admin_api
        reply["body"] = {}
        response = client.post(
            "/functions/v1/invite-user",
            json={"email": "old@shop.io", "role": "technician"},
            headers=auth_headers("super_admin"),
        )
        assert response.json()["message"] == "Invitation sent (user may already exist)"

    def test_failed_invite_removes_pending_request(self, client, auth_headers, run_db, admin_api):
        _, reply = admin_api
        reply["status"] = 422
        reply["body"] = {"msg": "Email address is invalid"}

        response = client.post(
            "/functions/v1/invite-user",
            json={"email": "bad@shop.io", "role": "admin"},
            headers=auth_headers("super_admin"),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Email address is invalid"}
        assert all_rows(run_db, InviteRequest) == []


# =============================================================================
# send-invoice-email
# =============================================================================


@pytest.fixture
def email_api():
    sent = []
    reply = {"status": 200, "body": {"id": "email_123"}}

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(reply["status"], json=reply["body"])

    service = EmailService(
        api_key="re_test",
        api_url="https://mail.example.test/emails",
        from_email="billing@example.test",
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_email_service] = lambda: service
    return sent, reply


@pytest.fixture
def invoice(add):
    def _invoice(email="billing@acme.io", device_name="Router 7"):
        customer = add(Client(name="Acme", email=email))
        plan = add(SubscriptionPlan(name="Pro", billing_cycle="monthly", amount=49))
        device = add(Device(name=device_name, identifier="R-7"))
        return add(ClientInvoice(
            client_id=customer.id,
            plan_id=plan.id,
            device_id=device.id,
            invoice_number="INV-0042",
            amount=1234.5,
            currency="EUR",
            status="sent",
            issued_at=date(2024, 5, 1),
            due_at=date(2024, 5, 15),
            period_start=date(2024, 5, 1),
            period_end=date(2024, 5, 31),
        ))
    return _invoice


class TestSendInvoiceEmail:
    def test_requires_token(self, client, email_api):
        response = client.post("/functions/v1/send-invoice-email", json={"invoiceId": "x"})
        assert response.status_code == 401

    def test_invoice_id_required(self, client, auth_headers, email_api):
        response = client.post(
            "/functions/v1/send-invoice-email", json={}, headers=auth_headers()
        )
        assert response.status_code == 400
        assert response.json() == {"error": "invoiceId required"}

    def test_unknown_invoice(self, client, auth_headers, email_api):
        response = client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": "missing"},
            headers=auth_headers(),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Invoice not found"}

    def test_client_without_email(self, client, auth_headers, email_api, invoice):
        inv = invoice(email=None)
        response = client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": inv.id},
            headers=auth_headers(),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Client has no email address"}
        assert email_api[0] == []

    def test_sends_rendered_invoice(self, client, auth_headers, email_api, invoice, run_db):
        sent, _ = email_api
        inv = invoice()

        response = client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": inv.id},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "email_123"}

        message = sent[0]
        assert message["to"] == ["billing@acme.io"]
        assert message["from"] == "billing@example.test"
        assert message["subject"] == "Invoice INV-0042 from Ezyy Inventory"
        assert "EUR 1,234.5" in message["html"]
        assert "Pro (monthly)" in message["html"]
        assert "Router 7" in message["html"]
        assert "2024-05-01 to 2024-05-31" in message["html"]

        actions = [(a.action, a.entity_id) for a in all_rows(run_db, AuditLog)]
        assert ("invoice.sent", inv.id) in actions

    def test_empty_device_name_does_not_fall_back(self, client, auth_headers, email_api, invoice):
        sent, _ = email_api
        inv = invoice(device_name="")

        client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": inv.id},
            headers=auth_headers(),
        )

        assert "R-7" not in sent[0]["html"]
        assert "Device" not in sent[0]["html"]

    def test_upstream_status_passthrough(self, client, auth_headers, email_api, invoice):
        _, reply = email_api
        reply["status"] = 403
        reply["body"] = {"message": "Domain not verified"}
        inv = invoice()

        response = client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": inv.id},
            headers=auth_headers(),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Domain not verified"}

    def test_missing_api_key(self, client, auth_headers, invoice):
        app.dependency_overrides[get_email_service] = lambda: EmailService(api_key="")
        inv = invoice()
        response = client.post(
            "/functions/v1/send-invoice-email",
            json={"invoiceId": inv.id},
            headers=auth_headers(),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "RESEND_API_KEY not configured"}


# =============================================================================
# send-client-mail
# =============================================================================


MAIL_URL = "/functions/v1/send-client-mail"


class TestSendClientMail:
    def test_requires_token(self, client, email_api):
        assert client.post(MAIL_URL, json={"clientId": "x"}).status_code == 401

    def test_client_id_required(self, client, auth_headers, email_api):
        response = client.post(MAIL_URL, json={"subject": "s", "bodyHtml": "b"}, headers=auth_headers())
        assert response.status_code == 400
        assert response.json() == {"error": "clientId required for single send"}

    def test_unknown_client(self, client, auth_headers, email_api):
        response = client.post(
            MAIL_URL,
            json={"clientId": "missing", "subject": "s", "bodyHtml": "b"},
            headers=auth_headers(),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Client not found"}

    def test_client_without_email(self, client, auth_headers, add, email_api):
        customer = add(Client(name="Acme"))
        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "subject": "s", "bodyHtml": "b"},
            headers=auth_headers(),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Client has no email address"}

    def test_subject_and_body_required(self, client, auth_headers, add, email_api):
        customer = add(Client(name="Acme", email="a@acme.io"))
        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "subject": "  ", "bodyHtml": "<p>x</p>"},
            headers=auth_headers(),
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": "subject and bodyHtml required when not using templateId"
        }
        assert email_api[0] == []

    def test_single_send_substitutes_placeholders(self, client, auth_headers, add, email_api):
        sent, _ = email_api
        customer = add(Client(name=" Acme ", email=" ops@acme.io "))

        response = client.post(
            MAIL_URL,
            json={
                "clientId": customer.id,
                "subject": "Hello {{client_name}}",
                "body_html": "<p>We will write to {{client_email}}, {{client_name}}.</p>",
            },
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert sent[0]["to"] == ["ops@acme.io"]
        assert sent[0]["subject"] == "Hello Acme"
        assert sent[0]["html"] == "<p>We will write to ops@acme.io, Acme.</p>"

    def test_single_send_with_template(self, client, auth_headers, add, email_api):
        sent, _ = email_api
        customer = add(Client(name="Acme", email="ops@acme.io"))
        template = add(MailTemplate(name="Welcome", subject="Hi {{client_name}}", body_html="<p>Welcome</p>"))

        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "templateId": template.id},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert sent[0]["subject"] == "Hi Acme"

    def test_unknown_template(self, client, auth_headers, add, email_api):
        customer = add(Client(name="Acme", email="ops@acme.io"))
        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "templateId": "missing"},
            headers=auth_headers(),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Template not found"}

    def test_single_send_upstream_failure(self, client, auth_headers, add, email_api):
        _, reply = email_api
        reply["status"] = 422
        reply["body"] = {"message": "Invalid to address"}
        customer = add(Client(name="Acme", email="ops@acme.io"))

        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "subject": "s", "bodyHtml": "b"},
            headers=auth_headers(),
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid to address"}

    def test_missing_api_key(self, client, auth_headers, add):
        app.dependency_overrides[get_email_service] = lambda: EmailService(api_key="")
        customer = add(Client(name="Acme", email="ops@acme.io"))
        response = client.post(
            MAIL_URL,
            json={"clientId": customer.id, "subject": "s", "bodyHtml": "b"},
            headers=auth_headers(),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "RESEND_API_KEY not configured"}


class TestBroadcastClientMail:
    @pytest.fixture
    def mailbox(self):
        sent = []

        def handler(request):
            message = json.loads(request.content)
            if message["to"] == ["bounce@globex.io"]:
                return httpx.Response(422, json={"message": "Mailbox unavailable"})
            sent.append(message)
            return httpx.Response(200, json={"id": "ok"})

        service = EmailService(api_key="re_test", transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_email_service] = lambda: service
        return sent

    def test_active_clients_with_email_by_default(self, client, auth_headers, add, mailbox):
        add(
            Client(name="Acme", email="ops@acme.io"),
            Client(name="Dormant", email="old@dormant.io", is_active=False),
            Client(name="No Mail"),
            Client(name="Blank", email="   "),
        )

        response = client.post(
            MAIL_URL,
            json={"broadcast": True, "subject": "News for {{client_name}}", "bodyHtml": "<p>x</p>"},
            headers=auth_headers(),
        )

        body = response.json()
        assert response.status_code == 200
        assert body["sent"] == 1
        assert body["failed"] == 0
        assert "errors" not in body
        assert [m["subject"] for m in mailbox] == ["News for Acme"]

    def test_inactive_included_when_requested(self, client, auth_headers, add, mailbox):
        add(
            Client(name="Acme", email="ops@acme.io"),
            Client(name="Dormant", email="old@dormant.io", is_active=False),
        )
        response = client.post(
            MAIL_URL,
            json={"broadcast": True, "subject": "s", "bodyHtml": "b", "activeOnly": False},
            headers=auth_headers(),
        )
        assert response.json()["sent"] == 2

    def test_failures_reported_per_recipient(self, client, auth_headers, add, mailbox):
        acme, globex = add(
            Client(name="Acme", email="ops@acme.io"),
            Client(name="Globex", email="bounce@globex.io"),
        )

        response = client.post(
            MAIL_URL,
            json={"broadcast": True, "subject": "s", "bodyHtml": "b"},
            headers=auth_headers(),
        )

        body = response.json()
        assert body["success"] is True
        assert (body["sent"], body["failed"]) == (1, 1)
        assert body["errors"] == ["Globex: Mailbox unavailable"]
        assert body["results"] == [
            {"client_id": acme.id, "email": "ops@acme.io", "success": True, "error": None},
            {"client_id": globex.id, "email": "bounce@globex.io", "success": False, "error": "Mailbox unavailable"},
        ]

    def test_device_type_filter(self, client, auth_headers, add, mailbox):
        acme, globex, initech = add(
            Client(name="Acme", email="ops@acme.io"),
            Client(name="Globex", email="hi@globex.io"),
            Client(name="Initech", email="it@initech.io"),
        )
        router, phone = add(
            Device(name="R1", device_type="router"),
            Device(name="P1", device_type="phone"),
        )
        add(
            DeviceAssignment(device_id=router.id, client_id=acme.id),
            DeviceAssignment(device_id=phone.id, client_id=globex.id),
            DeviceAssignment(device_id=router.id, client_id=initech.id, unassigned_at=datetime(2024, 1, 1)),
        )

        response = client.post(
            MAIL_URL,
            json={
                "broadcast": True,
                "subject": "s",
                "bodyHtml": "b",
                "deviceTypes": ["router", "Bad-Type", 3],
            },
            headers=auth_headers(),
        )

        assert response.json()["sent"] == 1
        assert [m["to"] for m in mailbox] == [["ops@acme.io"]]

    def test_broadcast_unknown_template(self, client, auth_headers, mailbox):
        response = client.post(
            MAIL_URL, json={"broadcast": True, "templateId": "missing"}, headers=auth_headers()
        )
        assert response.status_code == 404
        assert mailbox == []


# =============================================================================
# api-read
# =============================================================================


class TestApiRead:
    @pytest.fixture(autouse=True)
    def read_key(self, monkeypatch):
        monkeypatch.setattr(settings, "READ_ONLY_API_KEY", "read-key")

    def test_missing_key(self, client):
        response = client.get("/functions/v1/api-read?table=devices")
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or missing API key"}

    def test_invalid_table(self, client):
        response = client.get(
            "/functions/v1/api-read?table=profiles", headers={"x-api-key": "read-key"}
        )
        assert response.status_code == 400

    def test_reads_projection(self, client, add):
        add(Client(name="Acme", email="a@acme.io", notes="internal"))
        response = client.get("/functions/v1/api-read/clients?api_key=read-key")
        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["name"] == "Acme"
        assert "notes" not in rows[0]
