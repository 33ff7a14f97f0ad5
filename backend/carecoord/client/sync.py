"""Background jobs of the field client: pushing offline intakes and polling alerts."""
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .api_client import ApiClient, ApiError
from .storage import OfflineIntakeStatus, OfflineStore

logger = logging.getLogger(__name__)

DEFAULT_SYNC_SECONDS = 60
DEFAULT_POLL_SECONDS = 30


@dataclass
class SyncReport:
    intakes_synced: List[str] = field(default_factory=list)
    form_data_synced: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: bool = False


class OfflineSyncer:
    """Push what was captured offline once the API is reachable.

    Each record is synced on its own: a failure is logged, the record stays
    unsynced and is retried on the next run.
    """

    def __init__(self, store: OfflineStore, api: ApiClient, interval: int = DEFAULT_SYNC_SECONDS):
        self.store = store
        self.api = api
        self.interval = interval

    def sync(self) -> SyncReport:
        report = SyncReport()
        if not self.api.is_online():
            logger.info("API unreachable, offline sync postponed")
            report.skipped = True
            return report

        for intake in self.store.unsynced_intakes():
            #drafts stay on the device until the volunteer marks them ready
            if intake.status == OfflineIntakeStatus.DRAFT:
                continue
            try:
                self._push_intake(intake)
            except ApiError as e:
                logger.warning("Failed to sync offline intake %s: %s", intake.id, e.message)
                report.failed.append(intake.id)
                continue
            report.intakes_synced.append(intake.id)

        #form data saved against an intake that already exists on the server
        for form in self.store.unsynced_form_data():
            if form.intake_id is None:
                continue
            try:
                self.api.update_intake(form.intake_id, payload=form.form_data)
            except ApiError as e:
                logger.warning("Failed to sync form data %s: %s", form.id, e.message)
                report.failed.append(form.id)
                continue
            self.store.mark_form_data_synced(form.id)
            report.form_data_synced.append(form.id)

        if report.intakes_synced or report.form_data_synced:
            logger.info(
                "Offline sync pushed %d intakes and %d form updates",
                len(report.intakes_synced), len(report.form_data_synced),
            )
        return report

    def _push_intake(self, intake) -> None:
        if intake.status == OfflineIntakeStatus.SUBMITTED:
            self.store.mark_intake_synced(intake.id)
            return

        server_id = intake.server_id
        if server_id is None:
            created = self.api.create_intake(intake.patient_id)
            server_id = created["id"]
            #remembered so a retry does not open a second intake
            self.store.set_intake_server_id(intake.id, server_id)

        form = self.store.get_offline_form_data(intake.patient_id)
        payload = form.form_data if form is not None else intake.data
        try:
            if payload:
                self.api.update_intake(server_id, payload=payload)
            self.api.submit_intake(server_id)
        except ApiError as e:
            #an earlier submit reached the server but its reply was lost
            if intake.server_id is None or e.status_code != 409:
                raise
            logger.info("Offline intake %s already submitted as %s", intake.id, server_id)

        if form is not None:
            self.store.mark_form_data_synced(form.id, intake_id=server_id)
        self.store.mark_intake_synced(intake.id, status=OfflineIntakeStatus.SUBMITTED)

    def run_forever(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.sync()
            except Exception:
                logger.exception("Offline sync run failed")
            stop_event.wait(self.interval)


class EmergencyPoller:
    """Poll the active alert count and report changes to ``on_change(count, previous)``."""

    def __init__(
        self,
        api: ApiClient,
        on_change: Callable[[int, Optional[int]], None],
        interval: int = DEFAULT_POLL_SECONDS,
    ):
        self.api = api
        self.on_change = on_change
        self.interval = interval
        self.last_count: Optional[int] = None

    def poll_once(self) -> Optional[int]:
        try:
            result = self.api.emergency_active_count()
        except ApiError as e:
            logger.warning("Emergency poll failed: %s", e.message)
            return self.last_count

        count = result["count"]
        #the server may ask for a different cadence
        self.interval = result.get("pollIntervalSeconds", self.interval)
        if count != self.last_count:
            previous, self.last_count = self.last_count, count
            self.on_change(count, previous)
        return count

    def run_forever(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self.poll_once()
            stop_event.wait(self.interval)
