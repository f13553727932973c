# src/models/account.py

"""Signed-in user session returned by the login endpoint."""

import re
from dataclasses import asdict, dataclass
from typing import Any

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ROLE_NAMES: dict[int, str] = {0: "Admin", 1: "Manager", 2: "User"}


def parse_role(raw: Any) -> str:
    """Map the backend's numeric or named role to a role name.

    Unknown values default to ``User``.
    """
    if isinstance(raw, str):
        cleaned = raw.strip()
        if cleaned in ROLE_NAMES.values():
            return cleaned
        if cleaned.isdigit():
            return ROLE_NAMES.get(int(cleaned), "User")
        return "User"
    if isinstance(raw, int) and not isinstance(raw, bool):
        return ROLE_NAMES.get(raw, "User")
    return "User"


def _clean_name(value: Any) -> str:
    text = str(value or "").strip()
    return "" if text == "undefined" else text


@dataclass
class AuthSession:
    """Bearer token plus the identity the backend attached to it."""

    token: str
    user_id: int
    role: str = "User"
    name: str = ""
    last_name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AuthSession":
        return cls(
            token=str(data.get("token") or ""),
            user_id=int(data.get("userId") or 0),
            role=parse_role(data.get("role")),
            name=_clean_name(data.get("name")),
            last_name=_clean_name(data.get("lastName")),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthSession":
        return cls(
            token=str(data.get("token") or ""),
            user_id=int(data.get("user_id") or 0),
            role=parse_role(data.get("role")),
            name=_clean_name(data.get("name")),
            last_name=_clean_name(data.get("last_name")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def display_name(self) -> str:
        full = f"{self.name} {self.last_name}".strip()
        return full or "User"

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"
