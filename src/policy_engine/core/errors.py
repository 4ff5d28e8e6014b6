from __future__ import annotations

from typing import Any


class PolicyEngineError(Exception):
    """Base class for every error raised by the policy engine."""


class InvalidPolicyAttribute(PolicyEngineError, ValueError):
    """
    An attribute value outside its enumerated domain.

    Callers that only pass values the resolvers returned never see this.
    """

    def __init__(self, attribute: str, value: Any, detail: str | None = None) -> None:
        self.attribute = attribute
        self.value = value
        msg = f"invalid {attribute}: {value!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class UnknownSegment(PolicyEngineError, KeyError):
    def __init__(self, segment: Any) -> None:
        self.segment = segment
        super().__init__(f"unknown segment: {segment!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return str(self.args[0])


class CatalogError(PolicyEngineError, ValueError):
    """Provisioning data that cannot form a consistent site catalog."""
