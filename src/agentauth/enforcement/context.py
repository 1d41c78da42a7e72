"""RequestContext — the facts about one request that constraints are checked against."""
from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Per-request inputs to constraint enforcement.

    Parameters
    ----------
    now:
        The moment of the request. Defaults to the current UTC time; a naive
        datetime is interpreted as UTC.
    ip:
        The client IP address as seen by the relying service.
    mfa_verified:
        True when the request carries a verified MFA proof.
    value:
        The action's declared numeric value (e.g. a payment amount).
    action:
        Optional name of the attempted action, for logging.
    """

    now: Optional[datetime.datetime] = None
    ip: Optional[str] = None
    mfa_verified: bool = False
    value: Optional[float] = None
    action: Optional[str] = None

    def moment(self) -> datetime.datetime:
        """Return :attr:`now` as an aware datetime, defaulting to the current time."""
        if self.now is None:
            return datetime.datetime.now(datetime.timezone.utc)
        if self.now.tzinfo is None:
            return self.now.replace(tzinfo=datetime.timezone.utc)
        return self.now

    def unix_time(self) -> int:
        return int(self.moment().timestamp())


__all__ = ["RequestContext"]
