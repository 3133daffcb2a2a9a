# loyalty_auth/entities/account.py
from dataclasses import dataclass
from typing import Optional

RESTRICTED_STATUSES = frozenset({"banned", "suspended"})


@dataclass(frozen=True)
class Account:
    id: int
    email: str
    name: Optional[str]
    user_type: Optional[str]
    role: Optional[str]
    status: Optional[str]

    @property
    def token_role(self) -> str:
        return self.role or self.user_type or "customer"

    @property
    def is_restricted(self) -> bool:
        return (self.status or "").strip().lower() in RESTRICTED_STATUSES
