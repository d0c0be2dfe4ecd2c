"""Session protocol for the caller's credential store."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """
    Stores the customer's access token as the caller's credential.

    Clubman treats the token as an identity key only; expiry and rotation
    of the session itself belong to the implementation.
    Implemented by adapters/session.py for Django request sessions.
    """

    def set_session(self, token: str) -> None:
        """Remember ``token`` for subsequent requests."""
        ...

    def get_session_token(self) -> str | None:
        """Return the remembered token, or None."""
        ...

    def clear_session(self) -> None:
        """Forget the remembered token."""
        ...
