"""Form and submission storage."""

import copy
import logging
import secrets
import string
import threading
import time
from datetime import UTC, datetime
from typing import Any, Protocol

from hlpfl_forms.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from hlpfl_forms.services.validation import sanitize_input

logger = logging.getLogger(__name__)

FORM_STATUS_ACTIVE = "active"

# Fields an owner cannot change through an update
IMMUTABLE_FORM_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _new_id(prefix: str) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _form_not_found() -> NotFoundError:
    return NotFoundError("Form not found", "The requested form does not exist.")


class FormStore(Protocol):
    async def list_forms(self, user_id: int) -> list[dict[str, Any]]:
        ...

    async def create_form(self, user_id: int, data: dict[str, Any]) -> dict[str, Any]:
        ...

    async def get_form(self, form_id: str, user_id: int | None = None) -> dict[str, Any]:
        ...

    async def update_form(
        self, form_id: str, user_id: int, updates: dict[str, Any]
    ) -> dict[str, Any]:
        ...

    async def delete_form(self, form_id: str, user_id: int) -> None:
        ...

    async def submit(
        self, form_id: str, data: dict[str, Any], ip: str, user_agent: str | None
    ) -> dict[str, Any]:
        ...

    async def list_submissions(self, form_id: str, user_id: int) -> list[dict[str, Any]]:
        ...

    async def stats(self, user_id: int) -> dict[str, int]:
        ...


class MemoryFormStore:
    """In-process forms and submissions.

    Public lookups (``user_id=None``) see every form; owner lookups only see
    the caller's forms so another user's form id reads as not found.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._forms: dict[str, dict[str, Any]] = {}
        self._submissions: list[dict[str, Any]] = []

    def _find(self, form_id: str, user_id: int | None) -> dict[str, Any]:
        form = self._forms.get(form_id)
        if form is None or (user_id is not None and form["user_id"] != user_id):
            raise _form_not_found()
        return form

    def _submission_count(self, form_id: str) -> int:
        return sum(1 for s in self._submissions if s["form_id"] == form_id)

    async def list_forms(self, user_id: int) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {**copy.deepcopy(form), "submission_count": self._submission_count(form["id"])}
                for form in self._forms.values()
                if form["user_id"] == user_id
            ]

    async def create_form(self, user_id: int, data: dict[str, Any]) -> dict[str, Any]:
        name = sanitize_input(data.get("name"))
        if not name or not isinstance(name, str):
            raise ValidationError("Form name is required", "Please provide a name for your form.")

        now = _now_iso()
        form = {
            "id": _new_id("form"),
            "user_id": user_id,
            "name": name,
            "description": sanitize_input(data.get("description")) or "",
            "fields": data.get("fields") or [],
            "settings": data.get("settings") or {},
            "status": data.get("status") or FORM_STATUS_ACTIVE,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._forms[form["id"]] = form
        logger.info(f"Form {form['id']} created by user {user_id}")
        return copy.deepcopy(form)

    async def get_form(self, form_id: str, user_id: int | None = None) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._find(form_id, user_id))

    async def update_form(
        self, form_id: str, user_id: int, updates: dict[str, Any]
    ) -> dict[str, Any]:
        changes = {k: v for k, v in updates.items() if k not in IMMUTABLE_FORM_FIELDS}
        for key in ("name", "description"):
            if key in changes:
                changes[key] = sanitize_input(changes[key])
        if "name" in changes and not changes["name"]:
            raise ValidationError("Form name is required", "Please provide a name for your form.")

        with self._lock:
            form = self._find(form_id, user_id)
            form.update(changes)
            form["updated_at"] = _now_iso()
            return copy.deepcopy(form)

    async def delete_form(self, form_id: str, user_id: int) -> None:
        with self._lock:
            self._find(form_id, user_id)
            del self._forms[form_id]
            self._submissions = [s for s in self._submissions if s["form_id"] != form_id]
        logger.info(f"Form {form_id} deleted by user {user_id}")

    async def submit(
        self, form_id: str, data: dict[str, Any], ip: str, user_agent: str | None
    ) -> dict[str, Any]:
        with self._lock:
            form = self._forms.get(form_id)
            if form is None:
                raise NotFoundError(
                    "Form not found",
                    "The form you are trying to submit to does not exist.",
                )
            if form["status"] != FORM_STATUS_ACTIVE:
                raise ForbiddenError(
                    "Form is not accepting submissions", "This form is currently closed."
                )

            submission = {
                "id": _new_id("sub"),
                "form_id": form_id,
                "data": {key: sanitize_input(value) for key, value in data.items()},
                "ip": ip,
                "user_agent": user_agent,
                "created_at": _now_iso(),
            }
            self._submissions.append(submission)
            return copy.deepcopy(submission)

    async def list_submissions(self, form_id: str, user_id: int) -> list[dict[str, Any]]:
        with self._lock:
            self._find(form_id, user_id)
            return [copy.deepcopy(s) for s in self._submissions if s["form_id"] == form_id]

    async def stats(self, user_id: int) -> dict[str, int]:
        today = datetime.now(UTC).date()
        with self._lock:
            form_ids = {f["id"] for f in self._forms.values() if f["user_id"] == user_id}
            submissions = [s for s in self._submissions if s["form_id"] in form_ids]
            today_count = sum(
                1 for s in submissions if datetime.fromisoformat(s["created_at"]).date() == today
            )
        return {
            "total_forms": len(form_ids),
            "total_submissions": len(submissions),
            "today_submissions": today_count,
        }
