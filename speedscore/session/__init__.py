from .store import SessionStore, EVENT_LOGIN, EVENT_LOGOUT

__all__ = ["SessionStore", "EVENT_LOGIN", "EVENT_LOGOUT"]
