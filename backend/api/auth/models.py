"""Identity extracted from a verified bearer token."""

from dataclasses import dataclass


@dataclass
class TokenUser:
    """Authenticated principal from JWT claims."""

    subject: str
    email: str | None = None
    username: str | None = None

    @classmethod
    def from_token_payload(cls, payload: dict) -> "TokenUser":
        return cls(
            subject=payload.get("sub", ""),
            email=payload.get("email"),
            username=payload.get("preferred_username") or payload.get("username"),
        )
