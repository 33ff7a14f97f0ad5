"""Tests for the per-role dashboards."""

from datetime import date

from carecoord.models.patient_records import Medication


def submitted_intake(client, vhv_headers, patient, vhv):
    intake = client.post("/api/intakes", json={"patientId": patient.id, "vhvId": vhv.id}, headers=vhv_headers).json()
    client.post(f"/api/intakes/{intake['id']}/submit", headers=vhv_headers)
    return intake


class TestDoctorDashboard:
    def test_summarises_the_doctors_caseload(self, client, doctor_headers, vhv_headers, patient, vhv, doctor, assignment):
        client.post("/api/tasks", json={
            "title": "Follow up", "patientId": patient.id, "vhvId": vhv.id, "doctorId": doctor.id,
        }, headers=doctor_headers)
        intake = submitted_intake(client, vhv_headers, patient, vhv)
        client.post("/api/emergency", json={"patientId": patient.id, "priority": "CRITICAL"}, headers=vhv_headers)

        response = client.get("/api/doctor/dashboard", headers=doctor_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["doctorId"] == doctor.id
        assert body["totalAssignments"] == 1
        assert body["openTasks"] == 1
        assert body["pendingReviews"] == 1
        assert [item["id"] for item in body["reviewQueue"]] == [intake["id"]]
        assert body["activeAlerts"] == 1
        assert body["alerts"][0]["priority"] == "CRITICAL"
        assert body["pollIntervalSeconds"] == 30

    def test_unsupervised_intakes_stay_out_of_the_queue(self, client, doctor_headers, vhv_headers, patient, vhv, doctor):
        submitted_intake(client, vhv_headers, patient, vhv)

        body = client.get("/api/doctor/dashboard", headers=doctor_headers).json()

        assert body["pendingReviews"] == 0
        assert body["reviewQueue"] == []

    def test_doctors_only(self, client, vhv_headers, admin_headers):
        assert client.get("/api/doctor/dashboard", headers=vhv_headers).status_code == 403
        assert client.get("/api/doctor/dashboard", headers=admin_headers).status_code == 403


class TestVhvDashboard:
    def test_counts_drafts_and_returned_intakes(self, client, vhv_headers, doctor_headers, patient, vhv, assignment):
        client.post("/api/intakes", json={"patientId": patient.id, "vhvId": vhv.id}, headers=vhv_headers)
        returned = submitted_intake(client, vhv_headers, patient, vhv)
        client.post("/api/reviews", json={
            "id": returned["id"], "action": "request_changes", "comment": "Retake blood pressure",
        }, headers=doctor_headers)

        body = client.get("/api/vhv/dashboard", headers=vhv_headers).json()

        assert body["vhvId"] == vhv.id
        assert body["totalAssignments"] == 1
        assert body["drafts"] == 1
        assert body["changesRequested"] == 1
        assert [i["id"] for i in body["returnedIntakes"]] == [returned["id"]]
        assert body["pollIntervalSeconds"] == 30

    def test_open_tasks_soonest_first(self, client, vhv_headers, doctor_headers, patient, vhv, doctor):
        for title, due in (("Later", "2030-06-01T09:00:00"), ("Sooner", "2030-01-01T09:00:00")):
            client.post("/api/tasks", json={
                "title": title, "patientId": patient.id, "vhvId": vhv.id, "doctorId": doctor.id, "dueDate": due,
            }, headers=doctor_headers)

        body = client.get("/api/vhv/dashboard", headers=vhv_headers).json()

        assert body["openTasks"] == 2
        assert [t["title"] for t in body["tasks"]] == ["Sooner", "Later"]

    def test_undated_tasks_come_last(self, client, vhv_headers, doctor_headers, patient, vhv, doctor):
        for title, due in (("Someday", None), ("Dated", "2030-01-01T09:00:00")):
            client.post("/api/tasks", json={
                "title": title, "patientId": patient.id, "vhvId": vhv.id, "doctorId": doctor.id, "dueDate": due,
            }, headers=doctor_headers)

        body = client.get("/api/vhv/dashboard", headers=vhv_headers).json()

        assert [t["title"] for t in body["tasks"]] == ["Dated", "Someday"]

    def test_vhvs_only(self, client, doctor_headers):
        assert client.get("/api/vhv/dashboard", headers=doctor_headers).status_code == 403


class TestPatientDashboard:
    def test_shows_own_records(self, client, db, patient_headers, doctor_headers, patient, assignment):
        client.post("/api/patient/appointments", json={
            "patientId": patient.id, "scheduledDate": "2030-03-10", "scheduledTime": "09:30",
        }, headers=doctor_headers)
        db.add(Medication(patient_id=patient.id, name="Metformin", prescribed_date=date(2029, 2, 1)))
        db.commit()
        client.post("/api/patient/vital-signs", json={"patientId": patient.id, "heartRate": 64}, headers=patient_headers)
        client.post("/api/emergency", json={"patientId": patient.id, "priority": "medium"}, headers=patient_headers)

        response = client.get("/api/patient/dashboard", headers=patient_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["patient"]["id"] == patient.id
        assert [a["scheduledDate"] for a in body["upcomingAppointments"]] == ["2030-03-10"]
        assert [m["name"] for m in body["activeMedications"]] == ["Metformin"]
        assert body["latestVitals"]["heartRate"] == 64
        assert [a["priority"] for a in body["activeAlerts"]] == ["MEDIUM"]

    def test_empty_dashboard(self, client, patient_headers):
        body = client.get("/api/patient/dashboard", headers=patient_headers).json()

        assert body["upcomingAppointments"] == []
        assert body["latestVitals"] is None
        assert body["pollIntervalSeconds"] == 30

    def test_patients_only(self, client, doctor_headers):
        assert client.get("/api/patient/dashboard", headers=doctor_headers).status_code == 403
