"""
Outbound SMS.
With ``SMS_GATEWAY_URL`` set, messages are POSTed to the gateway through a
rate-limited ``requests`` session; otherwise sending is simulated in the log.
SMS is best-effort: ``send_sms`` reports success and never raises.
"""
import time
from collections import deque
from threading import Lock
from typing import Deque

import requests
from flask import current_app

from wazza.utils.logging import get_logger

log = get_logger(__name__)


class GatewaySession(requests.Session):
    """
    A ``requests.Session`` allowing at most ``calls`` requests per sliding
    ``period`` seconds. Callers over the limit wait for the oldest slot.
    """

    def __init__(self, calls: int = 60, period: float = 60.0, token: str | None = None) -> None:
        if calls <= 0 or period <= 0:
            raise ValueError("calls and period must be positive")
        super().__init__()
        self.calls = calls
        self.period = period
        self._sent: Deque[float] = deque()
        self._lock = Lock()
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _wait_for_slot(self) -> None:
        with self._lock:
            now = time.monotonic()
            while self._sent and self._sent[0] <= now - self.period:
                self._sent.popleft()
            if len(self._sent) >= self.calls:
                delay = self._sent.popleft() + self.period - now
                if delay > 0:
                    log.debug(f"SMS rate limit reached, waiting {delay:.1f}s")
                    time.sleep(delay)
                    now = time.monotonic()
            self._sent.append(now)

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        self._wait_for_slot()
        kwargs.setdefault("timeout", 10)
        response = super().request(method, url, **kwargs)
        response.raise_for_status()
        return response


def gateway_session() -> GatewaySession:
    """One session per app, built from its config on first use."""
    session = current_app.extensions.get("sms_session")
    if session is None:
        session = GatewaySession(
            calls=current_app.config.get("SMS_RATE_LIMIT", 60),
            token=current_app.config.get("SMS_GATEWAY_TOKEN"),
        )
        current_app.extensions["sms_session"] = session
    return session


def _masked(phone: str) -> str:
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"***{digits[-4:]}" if len(digits) > 4 else "***"


def send_sms(phone: str, message: str) -> bool:
    gateway = current_app.config.get("SMS_GATEWAY_URL")
    if not gateway:
        log.info(f"[SMS simulation] to {_masked(phone)}: {message}")
        return True
    try:
        gateway_session().post(gateway, json={"to": phone, "message": message})
    except requests.RequestException as e:
        log.error(f"SMS to {_masked(phone)} not delivered: {e}")
        return False
    log.info(f"SMS sent to {_masked(phone)}")
    return True


def gift_code_message(sender_name: str, redemption_code: str, business_name: str) -> str:
    return (
        f"Your gift from {sender_name} is ready at {business_name}! "
        f"Use redemption code {redemption_code} to collect your items."
    )


def gift_collected_message(recipient_name: str) -> str:
    return f"Your gift for {recipient_name} has been collected successfully!"
