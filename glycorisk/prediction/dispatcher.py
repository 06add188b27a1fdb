"""Best-effort outcome emails.

Dispatch runs on a bounded thread pool owned by the notifier. Every path
ends in a ``DispatchOutcome``; nothing raised by the transport reaches the
caller.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from glycorisk.models import Patient

from .metrics import prediction_dispatch_failed_total, prediction_dispatch_success_total
from .types import DispatchOutcome

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


class NotificationTransport(Protocol):
    def send(self, address: str, subject: str, body: str) -> None:
        ...


def mask_address(address: Optional[str]) -> str:
    if not address or "@" not in address:
        return "<invalid>"
    local, _, domain = address.partition("@")
    return f"{local[:1]}***@{domain}"


def build_message(record: Patient) -> tuple[str, str]:
    subject = f"Patient Prediction: {record.name}"
    body = (
        f"Patient {record.name}\n"
        f"Risk Level: {record.risk_level}\n"
        f"Prediction: {'Diabetic' if record.prediction else 'Not Diabetic'}"
    )
    return subject, body


class BestEffortNotifier:
    def __init__(self, transport: NotificationTransport, max_workers: int = 4, queue_limit: int = 100):
        self.transport = transport
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        # Held from dispatch() until the email finishes, so the executor's
        # unbounded work queue never holds more than queue_limit items
        self._slots = threading.BoundedSemaphore(queue_limit)

    def notify(self, record: Patient, address: Optional[str]) -> DispatchOutcome:
        """Send the outcome email now. Never raises."""
        context = {"record_id": record.id, "owner_id": record.user_id, "address": mask_address(address)}
        try:
            valid_address = str(_email_adapter.validate_python(address))
        except PydanticValidationError:
            return self._failed(record, context, "invalid address")

        subject, body = build_message(record)
        try:
            self.transport.send(valid_address, subject, body)
        except Exception as exc:  # noqa: BLE001
            return self._failed(record, context, f"{type(exc).__name__}: {exc}")

        prediction_dispatch_success_total.inc()
        logger.info("Outcome email sent for record %s", record.id)
        return DispatchOutcome(ok=True, record_id=record.id, context=context)

    def dispatch(self, record: Patient, address: Optional[str]) -> Future:
        """Queue ``notify`` on the pool and return its ``Future[DispatchOutcome]``.

        When ``queue_limit`` emails are already queued or sending, the
        returned future is already done with ``reason="queue full"``.
        """
        context = {"record_id": record.id, "owner_id": record.user_id, "address": mask_address(address)}
        if not self._slots.acquire(blocking=False):
            return _completed(self._failed(record, context, "queue full"))
        try:
            future = self._executor.submit(self.notify, record, address)
        except RuntimeError as exc:
            # Pool already shut down
            self._slots.release()
            return _completed(self._failed(record, context, f"dispatcher closed: {exc}"))
        future.add_done_callback(self._release_slot)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _release_slot(self, _future: Future) -> None:
        self._slots.release()

    def _failed(self, record: Patient, context: dict, reason: str) -> DispatchOutcome:
        prediction_dispatch_failed_total.inc()
        logger.warning(
            "Outcome email failed for record %s (owner %s, to %s): %s",
            record.id,
            record.user_id,
            context.get("address"),
            reason,
        )
        return DispatchOutcome(ok=False, reason=reason, record_id=record.id, context=context)


def _completed(outcome: DispatchOutcome) -> Future:
    future: Future = Future()
    future.set_result(outcome)
    return future
