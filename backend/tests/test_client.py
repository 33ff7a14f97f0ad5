"""Tests for the field client: local storage, API wrapper, offline sync and alert polling."""

import json
import threading
from unittest.mock import MagicMock

import pytest
import requests

from carecoord.client import (
    ApiClient,
    ApiError,
    EmergencyPoller,
    MemoryKeyValueStore,
    OfflineError,
    OfflineIntakeStatus,
    OfflineStore,
    OfflineSyncer,
    SessionCache,
    SQLiteKeyValueStore,
)


def make_response(status_code, body=None, reason="OK"):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = json.dumps(body).encode() if body is not None else b""
    return response


@pytest.fixture(params=["memory", "sqlite"])
def kv_store(request):
    if request.param == "memory":
        return MemoryKeyValueStore()
    return SQLiteKeyValueStore("sqlite://")


@pytest.fixture
def cache():
    return SessionCache(MemoryKeyValueStore())


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(cache, http):
    return ApiClient("http://api.test/", cache, http=http)


@pytest.fixture
def store():
    return OfflineStore("sqlite://")


class TestKeyValueStores:
    def test_set_get_remove(self, kv_store):
        kv_store.set("accessToken", "abc")
        kv_store.set("accessToken", "def")

        assert kv_store.get("accessToken") == "def"

        kv_store.remove("accessToken")
        kv_store.remove("accessToken")
        assert kv_store.get("accessToken") is None

    def test_clear(self, kv_store):
        kv_store.set("a", "1")
        kv_store.set("b", "2")

        kv_store.clear()

        assert kv_store.get("a") is None
        assert kv_store.get("b") is None

    def test_session_cache(self, kv_store):
        cache = SessionCache(kv_store)
        assert not cache.is_authenticated()

        cache.save_tokens("access", "refresh")
        cache.save_user({"id": 3, "role": "VHV"})

        assert cache.is_authenticated()
        assert cache.refresh_token == "refresh"
        assert cache.current_user == {"id": 3, "role": "VHV"}

        cache.clear()
        assert cache.access_token is None
        assert cache.current_user is None


class TestOfflineStore:
    def test_schema_version(self, store):
        assert store.version == 1

    def test_form_data_is_keyed_by_patient(self, store):
        store.save_form_data_offline(7, None, {"vitals": {"hr": 70}}, ["vitals"])
        store.save_form_data_offline(7, None, {"vitals": {"hr": 90}})

        record = store.get_offline_form_data(7)
        assert record.id == "form-7"
        assert record.form_data == {"vitals": {"hr": 90}}
        assert record.completed_sections == []
        assert [r.id for r in store.unsynced_form_data()] == ["form-7"]

        store.mark_form_data_synced("form-7", intake_id=12)

        assert store.unsynced_form_data() == []
        assert store.get_offline_form_data(7).intake_id == 12

    def test_missing_form_data(self, store):
        assert store.get_offline_form_data(99) is None

    def test_intakes_oldest_first(self, store):
        store.save_intake("first", 1, OfflineIntakeStatus.READY_FOR_SUBMISSION)
        store.save_intake("second", 2)

        assert [i.id for i in store.unsynced_intakes()] == ["first", "second"]

        store.mark_intake_synced("first", status=OfflineIntakeStatus.SUBMITTED)

        assert [i.id for i in store.unsynced_intakes()] == ["second"]
        assert store.get_intake("first").status == OfflineIntakeStatus.SUBMITTED

    def test_saving_again_marks_unsynced(self, store):
        store.save_intake("local-1", 1, OfflineIntakeStatus.READY_FOR_SUBMISSION)
        store.mark_intake_synced("local-1")

        store.save_intake("local-1", 1, OfflineIntakeStatus.READY_FOR_SUBMISSION, {"notes": "edited"})

        assert store.get_intake("local-1").synced is False
        assert store.get_intake("local-1").data == {"notes": "edited"}


class TestApiClient:
    def test_login_caches_tokens_and_user(self, api, cache, http):
        http.request.side_effect = [
            make_response(200, {"accessToken": "a1", "refreshToken": "r1", "role": "VHV", "userId": 3}),
            make_response(200, {"id": 3, "email": "vhv@example.com"}),
        ]

        user = api.login("vhv@example.com", "Passw0rd1")

        assert user["id"] == 3
        assert cache.access_token == "a1"
        assert cache.current_user["email"] == "vhv@example.com"
        method, url = http.request.call_args.args
        assert (method, url) == ("GET", "http://api.test/api/auth/me")
        assert http.request.call_args.kwargs["headers"]["Authorization"] == "Bearer a1"

    def test_401_refreshes_and_retries_once(self, api, cache, http):
        cache.save_tokens("old", "r1")
        http.request.side_effect = [
            make_response(401, {"error": "Could not validate credentials"}),
            make_response(200, {"accessToken": "new", "refreshToken": "r2"}),
            make_response(200, {"count": 2}),
        ]

        assert api.emergency_active_count() == {"count": 2}
        assert cache.access_token == "new"
        assert cache.refresh_token == "r2"
        assert http.request.call_count == 3

    def test_rejected_refresh_clears_the_session(self, api, cache, http):
        cache.save_tokens("old", "stale")
        http.request.side_effect = [
            make_response(401, {"error": "Could not validate credentials"}),
            make_response(401, {"error": "Invalid or expired refresh token"}),
        ]

        with pytest.raises(ApiError) as excinfo:
            api.emergency_active_count()

        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Could not validate credentials"
        assert not cache.is_authenticated()

    def test_error_body_becomes_api_error(self, api, http):
        http.request.return_value = make_response(409, {"error": "Cannot move intake from SUBMITTED to SUBMITTED"})

        with pytest.raises(ApiError) as excinfo:
            api.submit_intake(5)

        assert excinfo.value.status_code == 409
        assert "SUBMITTED" in excinfo.value.message

    def test_timeout_is_offline(self, api, http):
        http.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(OfflineError):
            api.create_intake(1)

    def test_is_online(self, api, http):
        http.request.return_value = make_response(200, {"status": "healthy"})
        assert api.is_online()

        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        assert not api.is_online()

    def test_none_filters_are_dropped(self, api, http):
        http.request.return_value = make_response(200, [])

        api.list_emergency_alerts(status="ACTIVE", priority=None)

        assert http.request.call_args.kwargs["params"] == {"status": "ACTIVE"}

    def test_logout_clears_cache_even_when_offline(self, api, cache, http):
        cache.save_tokens("a1", "r1")
        http.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(OfflineError):
            api.logout()

        assert not cache.is_authenticated()


class TestOfflineSyncer:
    @pytest.fixture
    def remote(self):
        remote = MagicMock(spec=ApiClient)
        remote.is_online.return_value = True
        remote.create_intake.return_value = {"id": 41, "status": "DRAFT"}
        return remote

    def test_ready_intake_is_created_filled_and_submitted(self, store, remote):
        store.save_form_data_offline(7, None, {"vitals": {"hr": 72}})
        store.save_intake("local-1", 7, OfflineIntakeStatus.READY_FOR_SUBMISSION)

        report = OfflineSyncer(store, remote).sync()

        assert report.intakes_synced == ["local-1"]
        remote.create_intake.assert_called_once_with(7)
        remote.update_intake.assert_called_once_with(41, payload={"vitals": {"hr": 72}})
        remote.submit_intake.assert_called_once_with(41)
        intake = store.get_intake("local-1")
        assert intake.synced is True
        assert intake.server_id == 41
        assert intake.status == OfflineIntakeStatus.SUBMITTED
        assert store.get_offline_form_data(7).intake_id == 41
        assert store.unsynced_form_data() == []

    def test_drafts_stay_local(self, store, remote):
        store.save_intake("draft-1", 7)

        report = OfflineSyncer(store, remote).sync()

        assert report.intakes_synced == []
        remote.create_intake.assert_not_called()
        assert [i.id for i in store.unsynced_intakes()] == ["draft-1"]

    def test_failure_keeps_record_and_retry_reuses_server_intake(self, store, remote):
        store.save_intake("local-1", 7, OfflineIntakeStatus.READY_FOR_SUBMISSION, {"notes": "x"})
        remote.submit_intake.side_effect = [ApiError("Service unavailable", 503), {"id": 41}]
        syncer = OfflineSyncer(store, remote)

        first = syncer.sync()
        assert first.failed == ["local-1"]
        assert store.get_intake("local-1").synced is False
        assert store.get_intake("local-1").server_id == 41

        second = syncer.sync()
        assert second.intakes_synced == ["local-1"]
        remote.create_intake.assert_called_once_with(7)
        assert remote.update_intake.call_count == 2

    def test_lost_submit_reply_is_settled_on_retry(self, store, remote):
        store.save_intake("local-1", 7, OfflineIntakeStatus.READY_FOR_SUBMISSION, {"notes": "x"})
        remote.submit_intake.side_effect = [
            OfflineError("Request to /api/intakes/41/submit timed out"),
            ApiError("Cannot move intake from SUBMITTED to SUBMITTED", 409),
        ]
        syncer = OfflineSyncer(store, remote)

        assert syncer.sync().failed == ["local-1"]

        second = syncer.sync()

        assert second.intakes_synced == ["local-1"]
        assert second.failed == []
        intake = store.get_intake("local-1")
        assert intake.synced is True
        assert intake.status == OfflineIntakeStatus.SUBMITTED
        assert syncer.sync().intakes_synced == []

    def test_conflict_on_fresh_intake_still_fails(self, store, remote):
        store.save_intake("local-1", 7, OfflineIntakeStatus.READY_FOR_SUBMISSION)
        remote.submit_intake.side_effect = ApiError("Cannot move intake from SUBMITTED to SUBMITTED", 409)

        report = OfflineSyncer(store, remote).sync()

        assert report.failed == ["local-1"]
        assert store.get_intake("local-1").synced is False

    def test_offline_run_is_skipped(self, store, remote):
        store.save_intake("local-1", 7, OfflineIntakeStatus.READY_FOR_SUBMISSION)
        remote.is_online.return_value = False

        report = OfflineSyncer(store, remote).sync()

        assert report.skipped is True
        remote.create_intake.assert_not_called()

    def test_already_submitted_intake_is_only_marked(self, store, remote):
        store.save_intake("local-1", 7, OfflineIntakeStatus.SUBMITTED)

        OfflineSyncer(store, remote).sync()

        remote.create_intake.assert_not_called()
        assert store.unsynced_intakes() == []

    def test_form_data_for_known_intake_is_pushed(self, store, remote):
        store.save_form_data_offline(8, 99, {"symptoms": {"chiefComplaint": "Cough"}})

        report = OfflineSyncer(store, remote).sync()

        assert report.form_data_synced == ["form-8"]
        remote.update_intake.assert_called_once_with(99, payload={"symptoms": {"chiefComplaint": "Cough"}})

    def test_run_forever_stops_on_event(self, store, remote):
        stop = threading.Event()
        syncer = OfflineSyncer(store, remote, interval=0)
        remote.is_online.side_effect = lambda: stop.set() or True

        syncer.run_forever(stop)

        remote.is_online.assert_called_once()


class TestEmergencyPoller:
    def test_reports_changes_only(self):
        remote = MagicMock(spec=ApiClient)
        remote.emergency_active_count.side_effect = [
            {"count": 1, "pollIntervalSeconds": 15},
            {"count": 1, "pollIntervalSeconds": 15},
            {"count": 3, "pollIntervalSeconds": 15},
            OfflineError("Request to /api/emergency/active-count timed out"),
        ]
        changes = []
        poller = EmergencyPoller(remote, lambda count, previous: changes.append((count, previous)))

        results = [poller.poll_once() for _ in range(4)]

        assert results == [1, 1, 3, 3]
        assert changes == [(1, None), (3, 1)]
        assert poller.interval == 15

    def test_run_forever_stops_on_event(self):
        remote = MagicMock(spec=ApiClient)
        remote.emergency_active_count.return_value = {"count": 2}
        stop = threading.Event()
        poller = EmergencyPoller(remote, lambda count, previous: stop.set(), interval=0)

        poller.run_forever(stop)

        assert poller.last_count == 2
