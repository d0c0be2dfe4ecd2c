"""Clubman protocols."""

from clubman.protocols.notifier import Notifier
from clubman.protocols.session import SessionStore

__all__ = [
    "Notifier",
    "SessionStore",
]
