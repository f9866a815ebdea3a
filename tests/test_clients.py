"""
Tests for client endpoints
"""

from decimal import Decimal

from clinic_scheduler.domain.payments.schemas import FullPayment
from clinic_scheduler.domain.payments.service import PaymentService
from clinic_scheduler.models import Client

from .base import SESSION_DATE, LedgerTestCase


class ClientApiTest(LedgerTestCase):
    """Test client intake and updates"""

    def test_create_client_normalizes_contact_details(self):
        response = self.client.post(
            "/clients",
            json={
                "name": "  Maria Lima ",
                "phoneNumber": "+55 (11) 98765-4321",
                "email": "Maria@Example.com",
                "location": "Centro",
                "remainingSessions": 2,
            },
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["name"], "Maria Lima")
        self.assertEqual(body["phoneNumber"], "+5511987654321")
        self.assertEqual(body["email"], "maria@example.com")
        self.assertEqual(body["remainingSessions"], 2)

    def test_invalid_input_is_rejected(self):
        for payload in (
            {"name": "Maria", "phoneNumber": "123"},
            {"name": "Maria", "email": "not-an-email"},
            {"name": "Maria", "remainingSessions": -1},
            {"name": ""},
        ):
            response = self.client.post("/clients", json=payload)
            self.assertEqual(response.status_code, 422, payload)

    def test_list_clients_by_name_and_location(self):
        self.create_client(name="Zelia", location="Centro")
        self.create_client(name="Bruno", location="Norte")
        self.create_client(name="Ana", location="Centro")

        names = [c["name"] for c in self.client.get("/clients").json()]
        self.assertEqual(names, ["Ana", "Bruno", "Zelia"])

        names = [c["name"] for c in self.client.get("/clients", params={"location": "Centro"}).json()]
        self.assertEqual(names, ["Ana", "Zelia"])

    def test_update_cannot_move_session_balance(self):
        client = self.create_client(name="Ana", remaining_sessions=3)

        response = self.client.patch(
            f"/clients/{client.id}", json={"notes": "Prefers mornings", "remainingSessions": 50}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["notes"], "Prefers mornings")
        self.assertEqual(response.json()["remainingSessions"], 3)
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 3)

    def test_update_can_clear_optional_fields(self):
        client = self.create_client(name="Ana", email="ana@example.com", notes="Prefers mornings", location="Centro")

        response = self.client.patch(f"/clients/{client.id}", json={"email": None, "notes": None})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIsNone(body["email"])
        self.assertIsNone(body["notes"])
        # Fields left out of the request are untouched
        self.assertEqual(body["location"], "Centro")
        self.assertEqual(body["name"], "Ana")

    def test_update_ignores_null_name(self):
        client = self.create_client(name="Ana")

        response = self.client.patch(f"/clients/{client.id}", json={"name": None, "notes": "VIP"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Ana")
        self.assertEqual(response.json()["notes"], "VIP")

    def test_missing_client_is_not_found(self):
        response = self.client.get("/clients/999")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "NOT_FOUND")
        self.assertEqual(self.client.patch("/clients/999", json={"notes": "x"}).status_code, 404)

    def test_payment_history(self):
        client = self.create_client(name="Ana")
        other = self.create_client(name="Bruno")
        service = PaymentService(self.db, self.gateway)
        for amount in ("40", "60"):
            service.record_payment(
                FullPayment(clientId=client.id, clientName="Ana", amount=Decimal(amount), sessionDate=SESSION_DATE)
            )
        service.record_payment(FullPayment(clientId=other.id, amount=Decimal("10"), sessionDate=SESSION_DATE))

        history = self.client.get(f"/clients/{client.id}/payments").json()

        self.assertEqual([Decimal(p["amount"]) for p in history], [Decimal("60"), Decimal("40")])
