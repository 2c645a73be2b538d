# tests/test_api.py
"""HTTP surface: actor resolution, status codes and error mapping."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from carrental.models import User

BOOKING_BODY = {
    "trip_type": "withincity",
    "start_date": "2024-06-01",
    "end_date": "2024-06-05",
    "trip_start_time": "09:00",
    "meter_reading": 1000,
    "total_bill": 10000,
    "advance_paid": 3000,
    "discount_percentage": 10,
    "discount_reference": "Manager",
    "driver_preference": "driver",
    "customer_name": "Hamza Khan",
    "cell_number": "03211234567",
    "id_card_number": "3520198765431",
}


def booking_body(seed, **overrides):
    body = dict(BOOKING_BODY, vehicle_id=seed.corolla.id, driver_id=seed.ali.id)
    body.update(overrides)
    return body


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["database"] == "ok"


class TestActor:
    def test_missing_actor(self, client, seed):
        resp = client.post("/api/v1/bookings", json=booking_body(seed))
        assert resp.status_code == 401

    def test_role_header_must_match_user(self, client, seed):
        headers = {"X-Actor-Id": str(seed.employee.id), "X-Actor-Role": "admin"}
        assert client.get("/api/v1/employees", headers=headers).status_code == 401

    def test_blocked_user_rejected(self, client, seed, db, as_actor):
        seed.employee.blocked = True
        db.commit()
        assert client.get("/api/v1/bookings", headers=as_actor(seed.employee)).status_code == 401

    def test_wrong_role(self, client, seed, as_actor):
        resp = client.get("/api/v1/bookings", headers=as_actor(seed.stakeholder))
        assert resp.status_code == 403

    def test_admin_only_endpoint(self, client, seed, as_actor):
        assert client.get("/api/v1/employees", headers=as_actor(seed.employee)).status_code == 403
        assert client.get("/api/v1/employees", headers=as_actor(seed.admin)).status_code == 200


class TestBookingsApi:
    def test_create_returns_billing(self, client, seed, as_actor):
        resp = client.post("/api/v1/bookings", json=booking_body(seed), headers=as_actor(seed.employee))
        assert resp.status_code == 201
        data = resp.json()
        assert data["booking"]["status"] == "active"
        assert data["billing"]["discount_amount"] == 1000
        assert data["billing"]["discounted_total"] == 9000
        assert data["billing"]["remaining"] == 6000
        assert data["customer"]["booking_count"] == 1

    def test_overlap_is_409(self, client, seed, as_actor):
        headers = as_actor(seed.employee)
        client.post("/api/v1/bookings", json=booking_body(seed), headers=headers)
        resp = client.post(
            "/api/v1/bookings",
            json=booking_body(seed, driver_id=seed.umar.id, start_date="2024-06-05", end_date="2024-06-09"),
            headers=headers,
        )
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Vehicle is not available for selected dates"

    def test_bad_body_is_400(self, client, seed, as_actor):
        resp = client.post(
            "/api/v1/bookings", json=booking_body(seed, cell_number="12345"), headers=as_actor(seed.employee)
        )
        assert resp.status_code == 400

    def test_invariant_message_surfaced(self, client, seed, as_actor):
        resp = client.post(
            "/api/v1/bookings", json=booking_body(seed, advance_paid=20000), headers=as_actor(seed.employee)
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Advance paid cannot be greater than total bill"

    def test_unknown_booking_is_404(self, client, seed, as_actor):
        resp = client.get("/api/v1/bookings/999/details", headers=as_actor(seed.employee))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Booking not found"

    def test_cancel_then_end_rejected(self, client, seed, as_actor):
        headers = as_actor(seed.employee)
        booking_id = client.post("/api/v1/bookings", json=booking_body(seed), headers=headers).json()["booking"]["id"]

        resp = client.patch(f"/api/v1/bookings/{booking_id}/cancel", json={}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["booking"]["refund_amount"] == 3000

        resp = client.patch(
            f"/api/v1/bookings/{booking_id}/end",
            json={"end_time": "18:00", "final_meter_reading": 1200},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Only active bookings can be ended"

    def test_end_reports_kilometers(self, client, seed, as_actor):
        headers = as_actor(seed.employee)
        booking_id = client.post("/api/v1/bookings", json=booking_body(seed), headers=headers).json()["booking"]["id"]
        resp = client.patch(
            f"/api/v1/bookings/{booking_id}/end",
            json={"end_time": "18:00", "final_meter_reading": 1320, "additional_charges": 1000},
            headers=headers,
        )
        assert resp.status_code == 200
        data = resp.json()["booking"]
        assert data["total_kilometers"] == 320
        assert data["billing"]["discounted_total"] == 9900

    def test_edit_form_for_cancelled_booking(self, client, seed, as_actor):
        headers = as_actor(seed.employee)
        booking_id = client.post("/api/v1/bookings", json=booking_body(seed), headers=headers).json()["booking"]["id"]
        client.patch(f"/api/v1/bookings/{booking_id}/cancel", json={"cancellation_reason": "No show"}, headers=headers)
        resp = client.get(f"/api/v1/bookings/{booking_id}/edit", headers=headers)
        assert resp.status_code == 400

    def test_invalid_status_listing(self, client, seed, as_actor):
        resp = client.get("/api/v1/bookings/status/archived", headers=as_actor(seed.employee))
        assert resp.status_code == 400


class TestOtherEndpoints:
    def test_fleet_inverted_range(self, client, seed, as_actor):
        resp = client.get(
            "/api/v1/vehicles/availability",
            params={"start_date": "2024-06-06", "end_date": "2024-06-01"},
            headers=as_actor(seed.employee),
        )
        assert resp.status_code == 400

    def test_stakeholder_sees_own_vehicles(self, client, seed, as_actor):
        resp = client.get("/api/v1/vehicles/mine", headers=as_actor(seed.stakeholder))
        assert resp.status_code == 200
        assert len(resp.json()["cars"]) == 2

    def test_employee_cannot_register_vehicle(self, client, seed, as_actor):
        body = {
            "model": "City", "year": 2021, "color": "Grey", "registration_number": "LEC-1",
            "chassis_number": "CH-9", "engine_number": "EN-9",
        }
        assert client.post("/api/v1/vehicles", json=body, headers=as_actor(seed.employee)).status_code == 403
        resp = client.post("/api/v1/vehicles", json=body, headers=as_actor(seed.stakeholder))
        assert resp.status_code == 201
        assert resp.json()["owner_id"] == seed.stakeholder.id

    def test_duplicate_registration_is_409(self, client, seed, as_actor):
        body = {
            "model": "Corolla", "year": 2022, "color": "White", "registration_number": "LEA-1234",
            "chassis_number": "CH-X", "engine_number": "EN-X",
        }
        assert client.post("/api/v1/vehicles", json=body, headers=as_actor(seed.admin)).status_code == 409

    def test_booked_vehicle_cannot_be_deleted(self, client, seed, as_actor):
        client.post("/api/v1/bookings", json=booking_body(seed), headers=as_actor(seed.employee))
        resp = client.delete(f"/api/v1/vehicles/{seed.corolla.id}", headers=as_actor(seed.admin))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Vehicle cannot be deleted because it is currently booked."

    def test_monthly_report_invalid_month(self, client, seed, as_actor):
        resp = client.get(
            "/api/v1/reports/monthly", params={"month": "Smarch", "year": 2024}, headers=as_actor(seed.admin)
        )
        assert resp.status_code == 400

    def test_duplicate_stakeholder_is_409(self, client, seed, as_actor):
        body = {
            "full_name": "Bilal Two",
            "id_card_number": "3520112345671",
            "email": "other@example.com",
            "cell_phone": "03009999999",
            "commission_percentage": 15,
        }
        resp = client.post("/api/v1/stakeholders", json=body, headers=as_actor(seed.admin))
        assert resp.status_code == 409
        assert resp.json()["detail"] == "A user with this email, CNIC, or phone number already exists"

    def test_customer_search(self, client, seed, as_actor):
        headers = as_actor(seed.employee)
        client.post("/api/v1/bookings", json=booking_body(seed), headers=headers)
        resp = client.get("/api/v1/customers/search", params={"q": "0321"}, headers=headers)
        assert resp.status_code == 200
        assert [c["full_name"] for c in resp.json()] == ["Hamza Khan"]

    def test_expense_delete_requires_author_or_admin(self, client, seed, db, as_actor):
        other = User(name="Zara", email="zara@example.com", password_hash="x", role="employee")
        db.add(other)
        db.commit()

        created = client.post(
            "/api/v1/expenses",
            json={"title": "Fuel", "amount": 2500, "category": "Fuel"},
            headers=as_actor(seed.employee),
        )
        assert created.status_code == 201
        expense_id = created.json()["expense"]["id"]
        assert client.delete(f"/api/v1/expenses/{expense_id}", headers=as_actor(other)).status_code == 403
        assert client.delete(f"/api/v1/expenses/{expense_id}", headers=as_actor(seed.admin)).status_code == 200

    def test_unknown_role_header_is_401(self, client, seed):
        headers = {"X-Actor-Id": str(seed.admin.id), "X-Actor-Role": "superuser"}
        assert client.get("/api/v1/employees", headers=headers).status_code == 401

    def test_unknown_expense_category_filter(self, client, seed, as_actor):
        resp = client.get("/api/v1/expenses", params={"category": "Snacks"}, headers=as_actor(seed.admin))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid category"


class TestDriversApi:
    def test_deactivate_refused_while_booked(self, client, seed, as_actor):
        staff = as_actor(seed.employee)
        admin = as_actor(seed.admin)
        booking_id = client.post("/api/v1/bookings", json=booking_body(seed), headers=staff).json()["booking"]["id"]

        resp = client.delete(f"/api/v1/drivers/{seed.ali.id}", headers=admin)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Driver cannot be removed while assigned to an active booking"

        client.patch(f"/api/v1/bookings/{booking_id}/cancel", json={}, headers=staff)
        resp = client.delete(f"/api/v1/drivers/{seed.ali.id}", headers=admin)
        assert resp.status_code == 200
        assert resp.json() == {"status": "deactivated", "id": seed.ali.id}

        assert client.delete(f"/api/v1/drivers/{seed.ali.id}", headers=admin).status_code == 404

    def test_deactivated_driver_leaves_roster(self, client, seed, as_actor):
        client.delete(f"/api/v1/drivers/{seed.umar.id}", headers=as_actor(seed.admin))
        resp = client.get("/api/v1/drivers/names", headers=as_actor(seed.employee))
        assert resp.status_code == 200
        assert resp.json() == [{"id": seed.ali.id, "name": "Ali"}]

    def test_booking_deactivated_driver_is_404(self, client, seed, as_actor):
        client.delete(f"/api/v1/drivers/{seed.ali.id}", headers=as_actor(seed.admin))
        resp = client.post("/api/v1/bookings", json=booking_body(seed), headers=as_actor(seed.employee))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Driver not found"
