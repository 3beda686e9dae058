"""
ShutterDesk Backend - Contact, Client Request and Dashboard Route Tests
=========================================================================

What we test:
    ✅ The public contact form stores a NEW inquiry
    ✅ Contact form validation messages
    ✅ Owners list inquiries and move their status
    ✅ Clients submit requests under their own name and email
    ✅ Clients see only their own requests, matched by email
    ✅ The owner dashboard summary counts and sums by status
"""

from decimal import Decimal

import pytest

from shutterdesk.services.invoice_service import invoice_service

CONTACT_FORM = {
    "fullName": "Jane Doe",
    "email": "jane@example.com",
    "projectType": "Wedding",
    "desiredDate": "2026-06-14",
    "message": "We are getting married in June and would love a quote.",
}

CLIENT_REQUEST = {
    "projectType": "Family portrait",
    "desiredDate": "2026-11-02",
    "message": "Outdoor family session for five people, golden hour if possible.",
}

INVOICE = {
    "clientName": "Jane Doe",
    "clientEmail": "jane@example.com",
    "serviceDescription": "Wedding photography, full day coverage",
    "amount": "450.00",
}


class TestContactForm:

    @pytest.mark.asyncio
    async def test_public_submission_is_stored_as_new(self, test_client):
        response = await test_client.post("/api/contact", json=CONTACT_FORM)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["inquiry"]["fullName"] == "Jane Doe"
        assert body["inquiry"]["status"] == "new"
        assert body["inquiry"]["id"] > 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"fullName": "J"}, "Name must be at least 2 characters"),
            ({"email": "jane"}, "Please enter a valid email address"),
            ({"projectType": "  "}, "Please select a project type"),
            ({"desiredDate": ""}, "Please select a date"),
            ({"message": "Hi there"}, "Message must be at least 10 characters"),
        ],
    )
    async def test_validation_messages(self, test_client, overrides, message):
        response = await test_client.post("/api/contact", json={**CONTACT_FORM, **overrides})

        assert response.status_code == 400
        assert response.json()["error"] == message


class TestOwnerInquiries:

    @pytest.mark.asyncio
    async def test_owner_lists_newest_first(self, test_client, owner_headers):
        await test_client.post("/api/contact", json=CONTACT_FORM)
        await test_client.post("/api/contact", json={**CONTACT_FORM, "fullName": "Bob Smith"})

        response = await test_client.get("/api/contact-inquiries", headers=owner_headers)

        assert response.status_code == 200
        assert [i["fullName"] for i in response.json()] == ["Bob Smith", "Jane Doe"]

    @pytest.mark.asyncio
    async def test_owner_updates_status(self, test_client, owner_headers):
        created = await test_client.post("/api/contact", json=CONTACT_FORM)
        inquiry_id = created.json()["inquiry"]["id"]

        response = await test_client.patch(
            f"/api/contact-inquiries/{inquiry_id}",
            json={"status": "contacted"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json()["inquiry"]["status"] == "contacted"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, test_client, owner_headers):
        created = await test_client.post("/api/contact", json=CONTACT_FORM)
        inquiry_id = created.json()["inquiry"]["id"]

        response = await test_client.patch(
            f"/api/contact-inquiries/{inquiry_id}",
            json={"status": "archived"},
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_inquiry_is_404(self, test_client, owner_headers):
        response = await test_client.patch(
            "/api/contact-inquiries/9999", json={"status": "closed"}, headers=owner_headers
        )

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestClientRequests:

    @pytest.mark.asyncio
    async def test_request_uses_account_identity(self, test_client, client_headers):
        response = await test_client.post(
            "/api/client/requests",
            json={**CLIENT_REQUEST, "fullName": "Someone Else", "email": "other@example.com"},
            headers=client_headers,
        )

        assert response.status_code == 200
        inquiry = response.json()["inquiry"]
        assert inquiry["fullName"] == "Jane Doe"
        assert inquiry["email"] == "jane@example.com"
        assert inquiry["status"] == "new"

    @pytest.mark.asyncio
    async def test_short_message_rejected(self, test_client, client_headers):
        response = await test_client.post(
            "/api/client/requests",
            json={**CLIENT_REQUEST, "message": "Family photos"},
            headers=client_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Please provide more details about your project (at least 20 characters)"
        )

    @pytest.mark.asyncio
    async def test_client_sees_own_requests_only(self, test_client, client_headers):
        # Public form under the same address, different case
        await test_client.post("/api/contact", json={**CONTACT_FORM, "email": "Jane@Example.com"})
        await test_client.post("/api/contact", json={**CONTACT_FORM, "email": "bob@example.com"})
        await test_client.post("/api/client/requests", json=CLIENT_REQUEST, headers=client_headers)

        response = await test_client.get("/api/client/requests", headers=client_headers)

        assert response.status_code == 200
        inquiries = response.json()
        assert len(inquiries) == 2
        assert {i["email"].lower() for i in inquiries} == {"jane@example.com"}


class TestDashboardSummary:

    @pytest.mark.asyncio
    async def test_empty_studio(self, test_client, owner_headers):
        response = await test_client.get("/api/owner/dashboard-summary", headers=owner_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["newInquiries"] == 0
        assert body["activeProjects"] == 0
        assert Decimal(body["totalRevenue"]) == Decimal("0")
        assert Decimal(body["pendingRevenue"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_counts_and_sums_by_status(
        self, test_client, owner_headers, session_factory, mock_billing
    ):
        first = await test_client.post("/api/contact", json=CONTACT_FORM)
        await test_client.post("/api/contact", json=CONTACT_FORM)
        await test_client.patch(
            f"/api/contact-inquiries/{first.json()['inquiry']['id']}",
            json={"status": "converted"},
            headers=owner_headers,
        )
        await test_client.post("/api/create-invoice", json=INVOICE, headers=owner_headers)
        await test_client.post(
            "/api/create-invoice", json={**INVOICE, "amount": "120.50"}, headers=owner_headers
        )
        async with session_factory() as session:
            await invoice_service.apply_provider_event(session, "invoice.paid", "in_test_1")

        response = await test_client.get("/api/owner/dashboard-summary", headers=owner_headers)

        body = response.json()
        assert body["newInquiries"] == 1
        assert body["activeProjects"] == 1
        assert Decimal(body["totalRevenue"]) == Decimal("450.00")
        assert Decimal(body["pendingRevenue"]) == Decimal("120.50")
