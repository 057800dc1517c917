from __future__ import annotations

from dataclasses import dataclass, field

"""Values exchanged with the account and role backends."""

__all__ = [
    "NewAccount",
    "Role",
]


@dataclass(frozen=True)
class Role:
    id: int
    name: str
    code: str

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "code": self.code}


@dataclass(frozen=True)
class NewAccount:
    """Payload for the account-creation capability.

    The plaintext password never reaches this object; only its hash does.
    """
    email: str
    firstname: str
    lastname: str
    hashed_password: str
    registration_token: str
    roles: list[int] = field(default_factory=list)
    is_active: bool = False
