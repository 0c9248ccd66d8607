"""Request-scoped identity of the caller.

Passed explicitly into every mutating operation instead of living in a
module-level session, so concurrent requests under different users never
see each other's identity.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos.domain.exceptions import PermissionDeniedError


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    role: str

    def require_role(self, allowed: frozenset[str] | set[str], action: str) -> None:
        if self.role not in allowed:
            raise PermissionDeniedError(
                f"Role '{self.role}' is not allowed to {action}"
            )
