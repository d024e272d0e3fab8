"""
Synchronous HTTP client for the MediBook API.

Responses are parsed into the same pydantic schemas the API serves, so the
client and the server agree on field names and types.
"""

import json
import logging
import threading
from datetime import date
from typing import Any, Callable, Optional

import httpx
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as websocket_connect

from ..domain.appointments.schemas import AppointmentResponse, AvailableSlots
from ..domain.dashboard.schemas import AdminStats, DashboardResponse
from ..domain.doctors.schemas import DoctorCatalog, DoctorResponse
from ..domain.notifications.schemas import NotificationFeed, NotificationResponse
from ..domain.profiles.schemas import ProfileResponse
from ..errors import GatewayFailure, ValidationFailure

logger = logging.getLogger(__name__)

VALIDATION_STATUSES = (400, 422)


def _error_detail(response: httpx.Response) -> Any:
    try:
        return response.json().get("detail", response.text)
    except ValueError:
        return response.text or response.reason_phrase


class LiveFeed:
    """
    Handle for an open `/notifications/live` socket.

    A background thread reads each pushed notification and hands the decoded
    payload to `on_insert`. `close()` stops delivery and releases the socket;
    it is safe to call more than once.
    """

    def __init__(self, connection, on_insert: Callable[[dict], None]):
        self._connection = connection
        self._on_insert = on_insert
        self._closed = threading.Event()
        self._reader = threading.Thread(target=self._run, name="medibook-live-feed", daemon=True)
        self._reader.start()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _run(self) -> None:
        while not self._closed.is_set():
            try:
                message = self._connection.recv()
            except ConnectionClosed:
                break
            if self._closed.is_set():
                break

            try:
                payload = json.loads(message)
            except ValueError:
                logger.warning(f"⚠️ Ignoring malformed live notification: {message!r}")
                continue

            try:
                self._on_insert(payload)
            except Exception as e:
                logger.error(f"❌ Live notification callback failed: {e}")
        self._closed.set()
        logger.info("📴 Live notification feed stopped")

    def close(self) -> None:
        self._closed.set()
        self._connection.close()
        if threading.current_thread() is not self._reader:
            self._reader.join(timeout=5)

    def __enter__(self) -> "LiveFeed":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class MedibookClient:
    """
    Thin wrapper around an httpx.Client exposing each API operation.

    Pass `http` to reuse an existing client (a FastAPI TestClient works too);
    otherwise one is built from `base_url` and the Firebase ID `token`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        ws_connect: Callable[..., Any] = websocket_connect,
    ):
        if http is None and base_url is None:
            raise ValueError("Either base_url or http must be provided")
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout))
        self._ws_connect = ws_connect
        self._timeout = timeout
        self.token = token

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "MedibookClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise GatewayFailure(f"Request to {path} failed", cause=e) from e

        if response.status_code in VALIDATION_STATUSES:
            raise ValidationFailure(_error_detail(response), status_code=response.status_code)
        if not response.is_success:
            logger.warning(f"⚠️ {method} {path} returned HTTP {response.status_code}")
            raise GatewayFailure(_error_detail(response), status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def me(self) -> ProfileResponse:
        return ProfileResponse.model_validate(self._request("GET", "/profiles/me"))

    def set_role(self, account_id: str, role: str) -> ProfileResponse:
        data = self._request("PATCH", f"/admin/profiles/{account_id}/role", json={"role": role})
        return ProfileResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Doctor applications and directory
    # ------------------------------------------------------------------

    def catalog(self) -> DoctorCatalog:
        return DoctorCatalog.model_validate(self._request("GET", "/doctors/catalog"))

    def submit_application(self, **fields) -> DoctorResponse:
        data = self._request("POST", "/doctor-applications", json=fields)
        return DoctorResponse.model_validate(data)

    def list_applications(self, status: str = "pending") -> list[DoctorResponse]:
        data = self._request("GET", "/doctor-applications", params={"status": status})
        return [DoctorResponse.model_validate(item) for item in data]

    def my_applications(self) -> list[DoctorResponse]:
        data = self._request("GET", "/doctor-applications/mine")
        return [DoctorResponse.model_validate(item) for item in data]

    def decide_application(self, application_id: str, status: str) -> DoctorResponse:
        data = self._request(
            "PATCH", f"/doctor-applications/{application_id}", json={"status": status}
        )
        return DoctorResponse.model_validate(data)

    def list_doctors(
        self, search: Optional[str] = None, specialization: Optional[str] = None
    ) -> list[DoctorResponse]:
        params = {}
        if search:
            params["search"] = search
        if specialization:
            params["specialization"] = specialization
        data = self._request("GET", "/doctors", params=params)
        return [DoctorResponse.model_validate(item) for item in data]

    def specializations(self) -> list[str]:
        return self._request("GET", "/doctors/specializations")

    def get_doctor(self, doctor_id: str) -> DoctorResponse:
        return DoctorResponse.model_validate(self._request("GET", f"/doctors/{doctor_id}"))

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def available_slots(self, doctor_id: str, on_date: date) -> list[str]:
        data = self._request(
            "GET", f"/doctors/{doctor_id}/slots", params={"date": on_date.isoformat()}
        )
        return AvailableSlots.model_validate(data).slots

    def book(self, doctor_id: str, on_date: date, time: str) -> AppointmentResponse:
        data = self._request(
            "POST",
            "/appointments",
            json={"doctor_id": doctor_id, "date": on_date.isoformat(), "time": time},
        )
        return AppointmentResponse.model_validate(data)

    def list_appointments(self, status: Optional[str] = None) -> list[AppointmentResponse]:
        params = {"status": status} if status else {}
        data = self._request("GET", "/appointments", params=params)
        return [AppointmentResponse.model_validate(item) for item in data]

    def set_appointment_status(self, appointment_id: str, status: str) -> AppointmentResponse:
        data = self._request("PATCH", f"/appointments/{appointment_id}", json={"status": status})
        return AppointmentResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Notifications and dashboards
    # ------------------------------------------------------------------

    def notifications(self) -> NotificationFeed:
        return NotificationFeed.model_validate(self._request("GET", "/notifications"))

    def mark_seen(self, notification_id: str) -> NotificationResponse:
        data = self._request("POST", f"/notifications/{notification_id}/seen")
        return NotificationResponse.model_validate(data)

    def live_url(self) -> str:
        """WebSocket URL of the live feed; the ID token goes in the query string"""
        url = self._http.base_url.join("/notifications/live").copy_merge_params(
            {"token": self.token}
        )
        return str(url.copy_with(scheme="wss" if url.scheme == "https" else "ws"))

    def subscribe_notifications(self, on_insert: Callable[[dict], None]) -> LiveFeed:
        """Open the live feed; `on_insert` gets each new notification until the feed is closed"""
        if not self.token:
            raise ValidationFailure("Sign in before subscribing to notifications")

        try:
            connection = self._ws_connect(self.live_url(), open_timeout=self._timeout)
        except (OSError, WebSocketException) as e:
            logger.error(f"❌ Could not open live notification feed: {e}")
            raise GatewayFailure("Failed to open live notification feed", cause=e) from e

        logger.info("📡 Live notification feed opened")
        return LiveFeed(connection, on_insert)

    def dashboard(self) -> DashboardResponse:
        return DashboardResponse.model_validate(self._request("GET", "/dashboard"))

    def admin_stats(self) -> AdminStats:
        return AdminStats.model_validate(self._request("GET", "/admin/stats"))
