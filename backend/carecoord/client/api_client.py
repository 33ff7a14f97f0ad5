"""HTTP client for the CareCoord API, used by the field client and the offline syncer."""
import logging
from typing import Any, Dict, Optional

import requests

from .storage import SessionCache

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """Raised when the API answers with an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class OfflineError(ApiError):
    """The server could not be reached (timeout or connection failure)."""


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session_cache: SessionCache,
        timeout: float = DEFAULT_TIMEOUT,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_cache = session_cache
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session_cache.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.http.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.exceptions.Timeout:
            raise OfflineError(f"Request to {path} timed out")
        except requests.exceptions.ConnectionError as e:
            raise OfflineError(f"Could not connect to API: {e}")

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        retry_on_401: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        A 401 triggers one token refresh and a retry; error bodies are
        ``{"error": message}`` and surface as ``ApiError``.
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = self._send(method, path, json=json, params=params)

        if response.status_code == 401 and retry_on_401 and self.session_cache.refresh_token:
            if self.refresh():
                return self.request(method, path, json=json, params=params, retry_on_401=False)

        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.reason)
            except ValueError:
                message = response.text or response.reason
            raise ApiError(message, status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    # Session

    def login(self, email: str, password: str) -> Dict[str, Any]:
        tokens = self.request(
            "POST", "/api/auth/login",
            json={"email": email, "password": password},
            retry_on_401=False,
        )
        self.session_cache.save_tokens(tokens["accessToken"], tokens["refreshToken"])
        user = self.request("GET", "/api/auth/me")
        self.session_cache.save_user(user)
        logger.info("Signed in as %s", email)
        return user

    def refresh(self) -> bool:
        """Rotate the token pair; clears the cached session when the server refuses."""
        refresh_token = self.session_cache.refresh_token
        if not refresh_token:
            return False
        try:
            tokens = self.request(
                "POST", "/api/auth/refresh",
                json={"refreshToken": refresh_token},
                retry_on_401=False,
            )
        except OfflineError:
            raise
        except ApiError as e:
            logger.warning("Token refresh rejected: %s", e.message)
            self.session_cache.clear()
            return False
        self.session_cache.save_tokens(tokens["accessToken"], tokens["refreshToken"])
        return True

    def logout(self) -> None:
        try:
            if self.session_cache.access_token:
                self.request(
                    "POST", "/api/auth/logout",
                    json={"refreshToken": self.session_cache.refresh_token},
                    retry_on_401=False,
                )
        finally:
            self.session_cache.clear()

    def is_online(self) -> bool:
        try:
            self.request("GET", "/health", retry_on_401=False)
        except ApiError:
            return False
        return True

    # Intakes

    def create_intake(self, patient_id: int, vhv_id: Optional[int] = None) -> Dict[str, Any]:
        body = {"patientId": patient_id}
        if vhv_id is not None:
            body["vhvId"] = vhv_id
        return self.request("POST", "/api/intakes", json=body)

    def update_intake(
        self,
        intake_id: int,
        payload: Optional[Dict[str, Any]] = None,
        attachments: Optional[list] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"id": intake_id}
        if payload is not None:
            body["payload"] = payload
        if attachments is not None:
            body["attachments"] = attachments
        return self.request("PUT", "/api/intakes", json=body)

    def submit_intake(self, intake_id: int) -> Dict[str, Any]:
        return self.request("POST", f"/api/intakes/{intake_id}/submit")

    # Emergency alerts

    def list_emergency_alerts(self, **filters) -> list:
        """Filters: status, priority, patientId, doctorId, vhvId."""
        return self.request("GET", "/api/emergency", params=filters)

    def trigger_emergency(
        self,
        patient_id: int,
        priority: str,
        description: str,
        location: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self.request(
            "POST", "/api/emergency",
            json={
                "patientId": patient_id,
                "priority": priority,
                "description": description,
                "location": location,
            },
        )

    def emergency_active_count(self) -> Dict[str, Any]:
        return self.request("GET", "/api/emergency/active-count")
