from dataclasses import dataclass


@dataclass
class UserProfile:
    """Root record created for a user on first sign-in."""
    uid: str
    email: str | None
    created_at: int
