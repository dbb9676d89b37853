import logging

import requests

from roundtimer.client.snapshot import TimerSnapshot

logger = logging.getLogger(__name__)


class TimerApiError(Exception):
    """A timer request the server refused or could not answer.

    ``snapshot`` is set when the server returned the unchanged timer along
    with the rejection (invalid transition).
    """

    def __init__(self, status_code, message, snapshot=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.snapshot = snapshot

    @property
    def is_rejection(self) -> bool:
        return self.snapshot is not None


class TimerApiClient:
    """Bearer-authenticated client for the round timer HTTP API."""

    def __init__(self, base_url: str, token: str, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_timer(self, event_id: int) -> TimerSnapshot:
        return self._request("GET", event_id, "timer")

    def get_round_info(self, event_id: int) -> dict:
        return self._send("GET", f"/events/{event_id}/round-info")

    def initialize(self, event_id: int) -> TimerSnapshot:
        return self._request("POST", event_id, "timer/initialize")

    def start(self, event_id: int) -> TimerSnapshot:
        return self._request("POST", event_id, "timer/start")

    def pause(self, event_id: int, time_remaining: int | None = None) -> TimerSnapshot:
        body = {} if time_remaining is None else {"time_remaining": int(time_remaining)}
        return self._request("POST", event_id, "timer/pause", body)

    def resume(self, event_id: int) -> TimerSnapshot:
        return self._request("POST", event_id, "timer/resume")

    def end_round(self, event_id: int) -> TimerSnapshot:
        return self._request("POST", event_id, "timer/end")

    def next_round(self, event_id: int) -> TimerSnapshot:
        return self._request("POST", event_id, "timer/next")

    def update_duration(
        self, event_id: int, round_duration: int | None = None, break_duration: int | None = None
    ) -> TimerSnapshot:
        body = {}
        if round_duration is not None:
            body["round_duration"] = int(round_duration)
        if break_duration is not None:
            body["break_duration"] = int(break_duration)
        return self._request("PUT", event_id, "timer/duration", body)

    def _request(self, method, event_id, path, body=None) -> TimerSnapshot:
        payload = self._send(method, f"/events/{event_id}/{path}", body, event_id)
        return TimerSnapshot.from_payload(event_id, payload)

    def _send(self, method, path, body=None, event_id=None) -> dict:
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers={"Authorization": f"Bearer {self.token}"},
            json=body,
            timeout=self.timeout,
        )
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400 or not isinstance(payload, dict):
            message = (
                payload.get("error") or payload.get("msg")
                if isinstance(payload, dict)
                else None
            ) or f"HTTP {response.status_code}"
            snapshot = None
            if isinstance(payload, dict) and payload.get("rejected") and event_id is not None:
                snapshot = TimerSnapshot.from_payload(event_id, payload)
            logger.warning(f"{method} {path} failed ({response.status_code}): {message}")
            raise TimerApiError(response.status_code, message, snapshot)
        return payload
