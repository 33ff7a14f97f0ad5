"""Tests for patient records and the patient portal."""

from datetime import date

import pytest

from carecoord.models.patient_records import Appointment, Medication, RescheduleRequest, Visit


@pytest.fixture
def appointment(client, doctor_headers, patient, doctor):
    response = client.post("/api/patient/appointments", json={
        "patientId": patient.id,
        "doctorId": doctor.id,
        "providerName": "Dr. Hopper",
        "scheduledDate": "2030-03-10",
        "scheduledTime": "09:30",
        "location": "Clinic A",
    }, headers=doctor_headers)
    assert response.status_code == 200
    return response.json()


class TestPatientRecords:
    """/api/patients CRUD and search."""

    def test_create_without_login(self, client, vhv_headers):
        response = client.post("/api/patients", json={
            "firstName": "Ravi",
            "lastName": "Perera",
            "dob": "1972-11-02",
            "gender": "male",
            "nationalId": "197212345V",
        }, headers=vhv_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Ravi Perera"
        assert body["gender"] == "MALE"
        assert body["userId"] is None

    def test_names_are_sanitized(self, client, vhv_headers):
        response = client.post("/api/patients", json={"firstName": "<script>", "lastName": "X"}, headers=vhv_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "firstName: Name contains invalid characters"}

    def test_patients_cannot_create_records(self, client, patient_headers):
        response = client.post("/api/patients", json={"firstName": "A", "lastName": "B"}, headers=patient_headers)

        assert response.status_code == 403

    def test_search(self, client, doctor_headers, patient):
        client.post("/api/patients", json={"firstName": "Ravi", "lastName": "Perera"}, headers=doctor_headers)

        found = client.get("/api/patients", params={"search": "pere"}, headers=doctor_headers).json()
        everyone = client.get("/api/patients", headers=doctor_headers).json()

        assert found["total"] == 1
        assert found["patients"][0]["firstName"] == "Ravi"
        assert everyone["total"] == 2
        assert everyone["perPage"] == 20

    def test_patient_only_sees_themselves(self, client, doctor_headers, patient_headers, patient):
        client.post("/api/patients", json={"firstName": "Ravi", "lastName": "Perera"}, headers=doctor_headers)

        listed = client.get("/api/patients", headers=patient_headers).json()

        assert [p["id"] for p in listed["patients"]] == [patient.id]
        assert client.get(f"/api/patients/{patient.id}", headers=patient_headers).status_code == 200
        assert client.get(f"/api/patients/{patient.id + 1}", headers=patient_headers).status_code == 403

    def test_get_unknown(self, client, doctor_headers):
        response = client.get("/api/patients/404", headers=doctor_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Patient 404 not found"}

    def test_update(self, client, vhv_headers, patient):
        response = client.put(f"/api/patients/{patient.id}", json={
            "allergies": "Penicillin",
            "emergencyContactPhone": "+94 71 000 1111",
        }, headers=vhv_headers)

        assert response.status_code == 200
        assert response.json()["allergies"] == "Penicillin"
        assert response.json()["firstName"] == "Jane"


class TestAppointments:
    """/api/patient/appointments."""

    def test_staff_book_and_patient_reads(self, client, patient_headers, patient, appointment):
        assert appointment["status"] == "SCHEDULED"
        assert appointment["appointmentType"] == "Consultation"

        listed = client.get("/api/patient/appointments", params={"patientId": patient.id}, headers=patient_headers)

        assert [a["id"] for a in listed.json()] == [appointment["id"]]

    def test_soonest_first(self, client, doctor_headers, patient, appointment):
        client.post("/api/patient/appointments", json={
            "patientId": patient.id, "scheduledDate": "2030-01-05", "scheduledTime": "14:00",
        }, headers=doctor_headers)

        listed = client.get("/api/patient/appointments", params={"patientId": patient.id}, headers=doctor_headers)

        assert [a["scheduledDate"] for a in listed.json()] == ["2030-01-05", "2030-03-10"]

    @pytest.mark.parametrize("value", ["9:30", "24:00", "noon"])
    def test_invalid_time(self, client, doctor_headers, patient, value):
        response = client.post("/api/patient/appointments", json={
            "patientId": patient.id, "scheduledDate": "2030-01-05", "scheduledTime": value,
        }, headers=doctor_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "scheduledTime: Time must be HH:MM"}

    def test_patient_cannot_book(self, client, patient_headers, patient):
        response = client.post("/api/patient/appointments", json={
            "patientId": patient.id, "scheduledDate": "2030-01-05", "scheduledTime": "10:00",
        }, headers=patient_headers)

        assert response.status_code == 403

    def test_other_patients_records_are_off_limits(self, client, patient_headers, patient):
        response = client.get("/api/patient/appointments", params={"patientId": patient.id + 1}, headers=patient_headers)

        assert response.status_code == 403


class TestReschedule:
    """POST /api/patient/reschedule."""

    def reschedule(self, client, headers, patient_id, appointment_id, **extra):
        body = {
            "appointmentId": appointment_id,
            "patientId": patient_id,
            "requestedDate": "2030-03-12",
            "requestedTime": "11:00",
            **extra,
        }
        return client.post("/api/patient/reschedule", json=body, headers=headers)

    def test_moves_the_appointment(self, client, db, patient_headers, patient, appointment):
        response = self.reschedule(client, patient_headers, patient.id, appointment["id"], reason="Travelling")

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["reason"] == "Travelling"

        db.expire_all()
        moved = db.get(Appointment, appointment["id"])
        assert moved.status.value == "RESCHEDULED"
        assert moved.scheduled_date == date(2030, 3, 12)
        assert moved.scheduled_time == "11:00"

    def test_second_request_replaces_the_first(self, client, db, patient_headers, patient, appointment):
        first = self.reschedule(client, patient_headers, patient.id, appointment["id"]).json()

        second = self.reschedule(
            client, patient_headers, patient.id, appointment["id"], requestedTime="15:45",
        ).json()

        assert second["id"] == first["id"]
        assert second["requestedTime"] == "15:45"
        assert db.query(RescheduleRequest).count() == 1

    def test_unknown_appointment(self, client, patient_headers, patient):
        response = self.reschedule(client, patient_headers, patient.id, 555)

        assert response.status_code == 404
        assert response.json() == {"error": "Appointment 555 not found"}

    def test_appointment_of_another_patient(self, client, doctor_headers, patient, appointment):
        other = client.post("/api/patients", json={"firstName": "Ravi", "lastName": "Perera"}, headers=doctor_headers).json()

        response = self.reschedule(client, doctor_headers, other["id"], appointment["id"])

        assert response.status_code == 400
        assert response.json() == {
            "error": f"Appointment {appointment['id']} does not belong to patient {other['id']}"
        }


class TestHistory:
    """Visits, medications and vital signs."""

    def test_visits_most_recent_first(self, client, db, patient_headers, patient):
        db.add_all([
            Visit(patient_id=patient.id, visit_date=date(2029, 1, 4), diagnosis="Flu"),
            Visit(patient_id=patient.id, visit_date=date(2029, 6, 1), diagnosis="Checkup"),
        ])
        db.commit()

        visits = client.get("/api/patient/visits", params={"patientId": patient.id}, headers=patient_headers).json()

        assert [v["diagnosis"] for v in visits] == ["Checkup", "Flu"]
        assert visits[0]["status"] == "COMPLETED"

    def test_only_active_medications(self, client, db, patient_headers, patient):
        db.add_all([
            Medication(patient_id=patient.id, name="Metformin", dosage="500mg", prescribed_date=date(2029, 2, 1)),
            Medication(patient_id=patient.id, name="Amoxicillin", is_active=False),
        ])
        db.commit()

        meds = client.get("/api/patient/medications", params={"patientId": patient.id}, headers=patient_headers).json()

        assert [m["name"] for m in meds] == ["Metformin"]

    def test_record_and_list_vital_signs(self, client, patient_headers, vhv_headers, patient, vhv):
        response = client.post("/api/patient/vital-signs", json={
            "patientId": patient.id,
            "temperature": 37.2,
            "bloodPressureSystolic": 118,
            "bloodPressureDiastolic": 76,
            "heartRate": 70,
        }, headers=vhv_headers)

        assert response.status_code == 200
        assert response.json()["recordedBy"] == vhv.user_id

        vitals = client.get("/api/patient/vital-signs", params={"patientId": patient.id}, headers=patient_headers).json()
        assert [v["heartRate"] for v in vitals] == [70]

    def test_out_of_range_temperature(self, client, vhv_headers, patient):
        response = client.post("/api/patient/vital-signs", json={
            "patientId": patient.id, "temperature": 50,
        }, headers=vhv_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "temperature: temperature must be between 30 and 45"}

    def test_patient_id_query_is_required(self, client, patient_headers):
        response = client.get("/api/patient/visits", headers=patient_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "patientId is required"}
