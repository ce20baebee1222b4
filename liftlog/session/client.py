"""HTTP client for the Liftlog API, used by workout sessions."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from liftlog.schemas.program import ProgramRead
from liftlog.schemas.workout import WorkoutCreate, WorkoutRead

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """Non-success response (or transport failure, with ``status_code`` None)."""

    def __init__(self, status_code: int | None, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}" if status_code else str(detail))


class LiftlogClient:
    """Thin synchronous wrapper over ``/api/v1``.

    Pass ``http`` to reuse an existing ``httpx.Client`` (e.g. one with a mock transport).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        http: httpx.Client | None = None,
        api_prefix: str = "/api/v1",
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=DEFAULT_TIMEOUT)
        self.api_prefix = api_prefix
        self.token = token

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "LiftlogClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.http.request(method, f"{self.api_prefix}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(None, str(e)) from e
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            detail = body.get("detail", body) if isinstance(body, dict) else body
            raise ApiError(response.status_code, detail)
        if response.status_code == 204:
            return None
        return response.json()

    def login(self, email: str, password: str, remember_me: bool = False) -> str:
        data = self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password, "remember_me": remember_me},
        )
        self.token = data["access_token"]
        return self.token

    def get_program(self, program_id: str) -> ProgramRead:
        return ProgramRead.model_validate(self._request("GET", f"/programs/{program_id}"))

    def list_workouts(self, program_id: str | None = None) -> list[WorkoutRead]:
        params = {"program_id": program_id} if program_id else None
        return [WorkoutRead.model_validate(w) for w in self._request("GET", "/workouts", params=params)]

    def previous_workout(self, program_id: str) -> WorkoutRead | None:
        """Most recent completed workout for the program, or None if there is none yet."""
        try:
            data = self._request("GET", "/workouts/previous", params={"program_id": program_id})
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return WorkoutRead.model_validate(data)

    def create_workout(self, payload: WorkoutCreate) -> WorkoutRead:
        return WorkoutRead.model_validate(
            self._request("POST", "/workouts", json=payload.model_dump(mode="json", exclude_none=True))
        )
