from datetime import datetime, timedelta

import pytest

from tests.conftest import auth_headers, future_slot

BOOKINGS = "/api/v1/bookings"


def booking_payload(patient, doctor, start=None, duration=30, **extra):
    payload = {
        "patient_id": patient.id,
        "doctor_id": doctor.id,
        "start": (start or future_slot()).isoformat(),
        "duration_minutes": duration,
    }
    payload.update(extra)
    return payload


@pytest.fixture
def create_booking(client, staff_user):
    """Create a booking through the API as staff and return its data."""
    def _create(patient, doctor, **kwargs):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient, doctor, **kwargs),
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def booking(create_booking, patient_user, doctor_user):
    return create_booking(patient_user, doctor_user, patient_notes="Sore throat")


class TestCreateBooking:
    """Test POST /bookings"""

    def test_patient_books_for_themselves(self, client, patient_user, doctor_user):
        start = future_slot(hour=9)
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user, start=start, duration=15),
            headers=auth_headers(patient_user)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["patient_id"] == patient_user.id
        assert data["doctor_id"] == doctor_user.id
        assert data["status"] == "pending"
        assert data["duration_minutes"] == 15
        assert datetime.fromisoformat(data["end"]) == start + timedelta(minutes=15)
        assert "doctor_notes" not in data

    def test_staff_books_for_any_patient(self, client, staff_user, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user),
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 201

    def test_patient_cannot_book_for_someone_else(
        self, client, patient_user, other_patient_user, doctor_user
    ):
        response = client.post(
            BOOKINGS,
            json=booking_payload(other_patient_user, doctor_user),
            headers=auth_headers(patient_user)
        )
        assert response.status_code == 403

    def test_doctor_cannot_create_bookings(self, client, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user),
            headers=auth_headers(doctor_user)
        )
        assert response.status_code == 403

    def test_requires_authentication(self, client, patient_user, doctor_user):
        response = client.post(BOOKINGS, json=booking_payload(patient_user, doctor_user))

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Missing token"

    def test_invalid_token(self, client, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user),
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_missing_fields(self, client, staff_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json={"doctor_id": doctor_user.id},
            headers=auth_headers(staff_user)
        )

        assert response.status_code == 400
        message = response.json()["message"]
        assert "patient_id" in message
        assert "start" in message
        assert "duration_minutes" in message

    def test_invalid_duration(self, client, staff_user, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user, duration=45),
            headers=auth_headers(staff_user)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Booking duration must be either 15 or 30 minutes"

    def test_past_start(self, client, staff_user, patient_user, doctor_user):
        start = datetime.utcnow().replace(second=0, microsecond=0) - timedelta(days=1)
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user, start=start),
            headers=auth_headers(staff_user)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Bookings can only be made for a future date/time"

    def test_unknown_field_rejected(self, client, staff_user, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user, room="B12"),
            headers=auth_headers(staff_user)
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "room"

    def test_doctor_double_booking(
        self, client, create_booking, staff_user, patient_user, other_patient_user, doctor_user
    ):
        create_booking(patient_user, doctor_user, start=future_slot(hour=10))

        response = client.post(
            BOOKINGS,
            json=booking_payload(other_patient_user, doctor_user, start=future_slot(hour=10, minute=15)),
            headers=auth_headers(staff_user)
        )

        assert response.status_code == 409
        assert response.json()["message"] == (
            "There are no available appointments at this time with your chosen doctor"
        )

    def test_back_to_back_bookings(
        self, client, create_booking, staff_user, patient_user, other_patient_user, doctor_user
    ):
        create_booking(patient_user, doctor_user, start=future_slot(hour=10))

        response = client.post(
            BOOKINGS,
            json=booking_payload(other_patient_user, doctor_user, start=future_slot(hour=10, minute=30)),
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 201

    def test_patient_double_booking_across_doctors(
        self, client, create_booking, patient_user, doctor_user, other_doctor_user
    ):
        create_booking(patient_user, doctor_user, start=future_slot(hour=14))

        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, other_doctor_user, start=future_slot(hour=14, minute=15)),
            headers=auth_headers(patient_user)
        )

        assert response.status_code == 409
        assert "patient already has a booking" in response.json()["message"]

    def test_doctor_notes_ignored_on_create(self, client, patient_user, doctor_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, doctor_user, doctor_notes="self diagnosed"),
            headers=auth_headers(patient_user)
        )
        assert response.status_code == 201

        booking_id = response.json()["data"]["id"]
        notes = client.get(f"{BOOKINGS}/{booking_id}/doctorNotes", headers=auth_headers(doctor_user))
        assert notes.json()["data"]["doctor_notes"] is None

    def test_unknown_doctor(self, client, staff_user, patient_user, other_patient_user):
        response = client.post(
            BOOKINGS,
            json=booking_payload(patient_user, other_patient_user),
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 404


class TestReadBookings:
    """Test booking reads and doctor note redaction"""

    def test_staff_lists_all_bookings(
        self, client, create_booking, staff_user, patient_user, other_patient_user, doctor_user
    ):
        create_booking(patient_user, doctor_user, start=future_slot(hour=9))
        create_booking(other_patient_user, doctor_user, start=future_slot(hour=11))

        response = client.get(BOOKINGS, headers=auth_headers(staff_user))

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [item["start"] for item in body["data"]] == sorted(item["start"] for item in body["data"])

    @pytest.mark.parametrize("role_fixture", ["patient_user", "doctor_user"])
    def test_only_staff_lists_all_bookings(self, request, client, role_fixture):
        user = request.getfixturevalue(role_fixture)
        response = client.get(BOOKINGS, headers=auth_headers(user))
        assert response.status_code == 403

    def test_patient_lists_own_bookings(self, client, booking, patient_user):
        response = client.get(f"{BOOKINGS}/patients/{patient_user.id}", headers=auth_headers(patient_user))

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["id"] == booking["id"]

    def test_patient_cannot_list_other_patient(self, client, booking, patient_user, other_patient_user):
        response = client.get(
            f"{BOOKINGS}/patients/{patient_user.id}",
            headers=auth_headers(other_patient_user)
        )
        assert response.status_code == 403

    def test_doctor_lists_own_bookings(self, client, booking, doctor_user, other_doctor_user):
        own = client.get(f"{BOOKINGS}/doctors/{doctor_user.id}", headers=auth_headers(doctor_user))
        other = client.get(f"{BOOKINGS}/doctors/{doctor_user.id}", headers=auth_headers(other_doctor_user))

        assert own.status_code == 200
        assert own.json()["count"] == 1
        assert other.status_code == 403

    def test_parties_read_single_booking(self, client, booking, patient_user, doctor_user, staff_user):
        for user in (patient_user, doctor_user, staff_user):
            response = client.get(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(user))
            assert response.status_code == 200
            assert response.json()["data"]["patient_notes"] == "Sore throat"

    def test_unrelated_users_cannot_read_booking(
        self, client, booking, other_patient_user, other_doctor_user
    ):
        for user in (other_patient_user, other_doctor_user):
            response = client.get(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(user))
            assert response.status_code == 403

    def test_missing_booking(self, client, staff_user):
        response = client.get(f"{BOOKINGS}/9999", headers=auth_headers(staff_user))

        assert response.status_code == 404
        assert response.json()["message"] == "Booking not found"

    def test_doctor_notes_only_visible_to_doctor(
        self, client, booking, doctor_user, patient_user, staff_user
    ):
        client.patch(
            f"{BOOKINGS}/{booking['id']}/doctorNotes",
            json={"doctor_notes": "Strep test negative"},
            headers=auth_headers(doctor_user)
        )

        as_doctor = client.get(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(doctor_user))
        assert as_doctor.json()["data"]["doctor_notes"] == "Strep test negative"

        for user in (patient_user, staff_user):
            single = client.get(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(user))
            assert "doctor_notes" not in single.json()["data"]

        listed = client.get(f"{BOOKINGS}/patients/{patient_user.id}", headers=auth_headers(patient_user))
        assert all("doctor_notes" not in item for item in listed.json()["data"])


class TestUpdateBooking:
    """Test PATCH /bookings/{id}"""

    def test_patient_updates_notes(self, client, booking, patient_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"patient_notes": "Also a fever"},
            headers=auth_headers(patient_user)
        )

        assert response.status_code == 200
        assert response.json()["data"]["patient_notes"] == "Also a fever"

    def test_doctor_confirms_booking(self, client, booking, doctor_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"status": "confirmed"},
            headers=auth_headers(doctor_user)
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

    def test_doctor_cannot_edit_patient_notes(self, client, booking, doctor_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"patient_notes": "overwritten"},
            headers=auth_headers(doctor_user)
        )
        assert response.status_code == 403

    def test_invalid_status(self, client, booking, staff_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"status": "cancelled"},
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 400

    def test_reschedule_into_conflict(
        self, client, create_booking, staff_user, patient_user, other_patient_user, doctor_user
    ):
        create_booking(patient_user, doctor_user, start=future_slot(hour=10))
        later = create_booking(other_patient_user, doctor_user, start=future_slot(hour=12))

        response = client.patch(
            f"{BOOKINGS}/{later['id']}",
            json={"start": future_slot(hour=10, minute=15).isoformat()},
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 409

    def test_reschedule_to_free_slot(self, client, booking, patient_user):
        new_start = future_slot(days=3, hour=16)
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"start": new_start.isoformat(), "duration_minutes": 15},
            headers=auth_headers(patient_user)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert datetime.fromisoformat(data["start"]) == new_start
        assert datetime.fromisoformat(data["end"]) == new_start + timedelta(minutes=15)

    def test_doctor_notes_not_writable_through_patch(self, client, booking, staff_user, doctor_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"doctor_notes": "from staff"},
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 200

        notes = client.get(f"{BOOKINGS}/{booking['id']}/doctorNotes", headers=auth_headers(doctor_user))
        assert notes.json()["data"]["doctor_notes"] is None

    def test_parties_are_immutable(self, client, booking, staff_user, other_doctor_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}",
            json={"doctor_id": other_doctor_user.id},
            headers=auth_headers(staff_user)
        )
        assert response.status_code == 400


class TestDoctorNotes:
    """Test the doctorNotes endpoints"""

    def test_doctor_writes_and_reads_notes(self, client, booking, doctor_user):
        url = f"{BOOKINGS}/{booking['id']}/doctorNotes"
        response = client.patch(url, json={"doctor_notes": "Follow up in a week"}, headers=auth_headers(doctor_user))

        assert response.status_code == 200
        assert response.json()["data"] == {"doctor_notes": "Follow up in a week"}

        response = client.get(url, headers=auth_headers(doctor_user))
        assert response.json()["data"]["doctor_notes"] == "Follow up in a week"

    def test_other_doctor_rejected(self, client, booking, other_doctor_user):
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}/doctorNotes",
            json={"doctor_notes": "not my patient"},
            headers=auth_headers(other_doctor_user)
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("role_fixture", ["patient_user", "staff_user"])
    def test_non_doctors_rejected(self, request, client, booking, role_fixture):
        user = request.getfixturevalue(role_fixture)
        url = f"{BOOKINGS}/{booking['id']}/doctorNotes"

        assert client.get(url, headers=auth_headers(user)).status_code == 403
        assert client.patch(url, json={"doctor_notes": "x"}, headers=auth_headers(user)).status_code == 403


class TestDeleteBooking:
    """Test DELETE /bookings/{id}"""

    def test_patient_deletes_own_booking(self, client, booking, patient_user, staff_user):
        response = client.delete(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(patient_user))

        assert response.status_code == 200
        assert response.json()["message"] == "Booking deleted successfully"

        again = client.get(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(staff_user))
        assert again.status_code == 404

    def test_staff_deletes_any_booking(self, client, booking, staff_user):
        response = client.delete(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(staff_user))
        assert response.status_code == 200

    def test_doctor_cannot_delete(self, client, booking, doctor_user):
        response = client.delete(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(doctor_user))
        assert response.status_code == 403

    def test_other_patient_cannot_delete(self, client, booking, other_patient_user):
        response = client.delete(f"{BOOKINGS}/{booking['id']}", headers=auth_headers(other_patient_user))
        assert response.status_code == 403

    def test_delete_missing_booking(self, client, staff_user):
        response = client.delete(f"{BOOKINGS}/9999", headers=auth_headers(staff_user))
        assert response.status_code == 404


class TestAppRoutes:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Hello from MediMate!"

    def test_health(self, client):
        response = client.get("/health")
        assert response.json()["database"] == "connected"

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")

        assert response.status_code == 404
        body = response.json()
        assert body["message"] == "Route not found"
        assert body["path"] == "/api/v1/nowhere"
