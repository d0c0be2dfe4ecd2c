"""Django request-session adapter for SessionStore."""

from clubman.conf import clubman_settings


class DjangoSessionStore:
    """
    Adapter: keeps the customer token in ``request.session``.

    Usage:
        session = DjangoSessionStore(request)
        LoyaltyService.verify_otp(program_id, phone, code, session=session)
    """

    def __init__(self, request):
        self.request = request

    @property
    def _key(self) -> str:
        return clubman_settings.SESSION_KEY

    def set_session(self, token: str) -> None:
        self.request.session[self._key] = token

    def get_session_token(self) -> str | None:
        return self.request.session.get(self._key)

    def clear_session(self) -> None:
        self.request.session.pop(self._key, None)
