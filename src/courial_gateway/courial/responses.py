"""
courial_gateway.courial.responses

Upstream response model and status mapping.

Responsibilities:
- Wrap an upstream reply (HTTP status + JSON body).
- Detect "logical" failures the upstream reports inside an HTTP 200 body.
- Map the upstream outcome onto the status code relayed to our caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_FAILURE_STATUS_VALUES = frozenset({"0", "false", "error", "failed", "fail"})
_ERROR_CODE_KEYS = ("code", "status_code", "error_code")


def _as_error_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, int) and 400 <= value <= 599:
        return value
    return None


@dataclass(frozen=True, slots=True)
class UpstreamResponse:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def logical_failure(self) -> bool:
        if self.body.get("success") is False:
            return True
        status = self.body.get("status")
        if status is False or (isinstance(status, int) and not isinstance(status, bool) and status == 0):
            return True
        return isinstance(status, str) and status.strip().lower() in _FAILURE_STATUS_VALUES

    @property
    def succeeded(self) -> bool:
        return self.ok and not self.logical_failure

    @property
    def message(self) -> str | None:
        for key in ("message", "msg", "error"):
            value = self.body.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    def relay_status(self) -> int:
        """
        Status code to answer our caller with.

        Non-2xx upstream codes pass through. A 2xx reply that reports failure in its
        body becomes the upstream's own error code when it carries a usable one,
        otherwise 400.
        """

        if not self.ok:
            return self.status_code
        if not self.logical_failure:
            return 200
        for key in _ERROR_CODE_KEYS:
            code = _as_error_code(self.body.get(key))
            if code is not None:
                return code
        return 400


# --- Module Notes -----------------------------------------------------------
# The upstream is inconsistent about how it signals failure (`success`, `status`);
# every supported shape is handled here so routers only ask `succeeded`.
