from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserAssignment:
    user_id: str
    policy_id: str | None = None


@dataclass(frozen=True, slots=True)
class LicenseCheck:
    available: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PolicyUsage:
    policy_id: str
    used: int
    limit: int

    @property
    def available(self) -> int:
        return self.limit - self.used

    @property
    def percentage(self) -> int:
        if self.limit <= 0:
            return 0
        return round(self.used / self.limit * 100)


@dataclass(frozen=True, slots=True)
class LicenseSummary:
    used: int
    limit: int
    policies: tuple[PolicyUsage, ...] = ()

    @property
    def percentage(self) -> int:
        if self.limit <= 0:
            return 0
        return round(self.used / self.limit * 100)
