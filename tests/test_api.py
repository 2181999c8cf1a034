"""
API tests through the FastAPI test client
"""

from datetime import datetime, timedelta

from heypaytm.services.excel_manager import ExcelManager


NAAN = {"name": "Naan", "quantity": 2, "price": 40}


def seat(client, table_number=5, name="Asha", guests=2):
    return client.post(
        "/api/sessions",
        json={"tableNumber": table_number, "customerName": name, "guestCount": guests},
    )


class TestRootAndHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["documentation"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert data["storage"] == "healthy"
        assert data["notification_service"] == "healthy"
        assert data["active_sessions"] == 0
        assert data["status"] in ("operational", "degraded")

        timestamp = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        assert timestamp.utcoffset() == timedelta(0)


class TestSessionEndpoints:
    """Test the session lifecycle over HTTP"""

    def test_dining_flow(self, client):
        response = seat(client)
        assert response.status_code == 201
        session = response.json()
        assert session["tableNumber"] == 5
        assert session["status"] == "active"

        response = client.post("/api/sessions/5/orders", json={"items": [NAAN]})
        assert response.status_code == 201
        order = response.json()
        assert order["total"] == 80

        response = client.patch(f"/api/sessions/5/orders/{order['id']}", json={"status": "ready"})
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

        response = client.get("/api/sessions/5")
        assert response.json()["totalAmount"] == 80

        response = client.get("/api/sessions/5/stats")
        assert response.json()["orderCount"] == 1

        response = client.post("/api/sessions/5/payment-request", json={"phoneNumber": "987-654-3210"})
        assert response.json()["status"] == "payment_requested"
        assert response.json()["phoneNumber"] == "9876543210"

        response = client.post("/api/sessions/5/complete")
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        assert client.get("/api/sessions/5").status_code == 404
        assert len(client.get("/api/sessions").json()) == 1
        assert client.get("/api/sessions/active").json() == []

    def test_complete_exports_to_excel(self, client):
        ExcelManager.clear_all()
        seat(client)
        client.post("/api/sessions/5/orders", json={"items": [NAAN]})
        client.post("/api/sessions/5/complete")

        rows = ExcelManager.get_all_sessions()
        assert rows[-1]["table_number"] == 5
        ExcelManager.clear_all()

    def test_conflict(self, client):
        seat(client)
        response = seat(client, name="Vikram")

        assert response.status_code == 409
        assert response.json()["error"] == "SessionConflictError"

    def test_table_out_of_range(self, client):
        assert seat(client, table_number=30).status_code == 400

    def test_schema_errors(self, client):
        assert seat(client, guests=0).status_code == 422
        assert client.post("/api/sessions/5/orders", json={"items": []}).status_code == 422

    def test_order_without_session(self, client):
        response = client.post("/api/sessions/9/orders", json={"items": [NAAN]})
        assert response.status_code == 404

    def test_unknown_order(self, client):
        seat(client)
        response = client.patch("/api/sessions/5/orders/ORD-1", json={"status": "ready"})
        assert response.status_code == 404

    def test_backward_status(self, client):
        seat(client)
        order = client.post("/api/sessions/5/orders", json={"items": [NAAN]}).json()
        client.patch(f"/api/sessions/5/orders/{order['id']}", json={"status": "served"})

        response = client.patch(f"/api/sessions/5/orders/{order['id']}", json={"status": "pending"})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStatusTransition"

    def test_no_orders_after_bill_request(self, client):
        seat(client)
        client.post("/api/sessions/5/payment-request")

        response = client.post("/api/sessions/5/orders", json={"items": [NAAN]})
        assert response.status_code == 400

    def test_phone_update(self, client):
        seat(client)
        assert client.put("/api/sessions/5/phone", json={"phoneNumber": "98765-43210"}).json()["phoneNumber"] == "9876543210"
        assert client.put("/api/sessions/5/phone", json={"phoneNumber": "123"}).status_code == 400

    def test_end_session(self, client):
        seat(client)
        response = client.delete("/api/sessions/5")

        assert response.json()["removed"] == 1
        assert client.get("/api/sessions").json() == []

    def test_send_bill(self, client, notifier):
        seat(client)
        client.post("/api/sessions/5/orders", json={"items": [NAAN]})
        client.post("/api/sessions/5/payment-request", json={"phoneNumber": "9876543210"})

        response = client.post("/api/sessions/5/bill")

        assert response.status_code == 200
        assert response.json()["bill"]["total"] == 84
        assert len(notifier.sent_messages) == 1

    def test_send_bill_without_phone(self, client):
        seat(client)
        assert client.post("/api/sessions/5/bill").status_code == 400


class TestOrderEndpoints:
    """Test the kitchen order list over HTTP"""

    def test_order_flow_and_analytics(self, client):
        response = client.post(
            "/api/orders",
            json={"tableNumber": 2, "items": [{"item": "Butter Naan", "quantity": 2, "price": 45}]},
        )
        assert response.status_code == 201
        order = response.json()
        assert order["total"] == 90

        client.post("/api/orders", json={"tableNumber": 3, "items": [{"item": "Lassi", "quantity": 1, "price": 120}]})

        assert len(client.get("/api/orders", params={"tableNumber": 2}).json()) == 1

        response = client.patch(f"/api/orders/{order['id']}", json={"status": "served"})
        assert response.json()["status"] == "served"
        assert len(client.get("/api/orders", params={"status": "served"}).json()) == 1

        analytics = client.get("/api/analytics").json()
        assert analytics["totalRevenue"] == 210
        assert analytics["avgOrderValue"] == 105
        assert analytics["popularItems"][0] == {"name": "Butter Naan", "count": 2}

        assert client.delete("/api/orders/served").json()["removed"] == 1
        assert len(client.get("/api/orders").json()) == 1

    def test_order_for_unknown_table(self, client):
        for table_number in (0, -3, 30):
            response = client.post(
                "/api/orders",
                json={"tableNumber": table_number, "items": [{"item": "Chai", "quantity": 1, "price": 40}]},
            )
            assert response.status_code == 400
        assert client.get("/api/orders").json() == []

    def test_unknown_order(self, client):
        assert client.patch("/api/orders/1", json={"status": "ready"}).status_code == 404


class TestTablePageEndpoints:

    def test_cash_payment(self, client, container):
        received = []
        container.realtime.on_cash_payment_request(received.append)

        response = client.post(
            "/api/cash-payments",
            json={"tableNumber": 4, "customerPhone": "9876543210", "total": 325},
        )

        assert response.status_code == 200
        assert response.json()["id"] > 0
        assert received[0].table_number == 4

    def test_voice_order(self, client):
        seat(client)
        response = client.post("/api/voice/5", json={"transcript": "Hey Paytm, order 2 butter naan"})
        assert response.json()["addedItem"]["name"] == "Butter Naan"

        response = client.post("/api/voice/5", json={"transcript": "Hey Paytm, I'm done"})
        assert response.json()["submittedOrder"]["total"] == 90
        assert client.get("/api/sessions/5").json()["totalAmount"] == 90

    def test_voice_quantity_too_large(self, client):
        seat(client)
        response = client.post("/api/voice/5", json={"transcript": "Hey Paytm, order 150 butter naan"})

        assert response.status_code == 200
        assert response.json()["message"].startswith("Please order at most 99")
        assert response.json()["cart"] == []

    def test_menu(self, client):
        menu = client.get("/api/menu").json()
        assert len(menu) == 9
        assert {item["kind"] for item in menu} == {"dish", "beverage"}
