from finman.core.modules.realtime.models import SessionId


class ConnectionRegistry:
    """Maps each user to their single live session.

    Last connect wins: registering a user again replaces the previous
    session. An inverse index keeps `remove` constant time and guarantees a
    superseded session can never evict its replacement.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionId] = {}
        self._users: dict[SessionId, str] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def register(self, user_id: str, session_id: SessionId) -> None:
        """Insert or overwrite the session for `user_id`. Empty ids are ignored."""
        if not user_id or not session_id:
            return

        previous_session = self._sessions.get(user_id)
        if previous_session is not None:
            self._users.pop(previous_session, None)

        # Same session re-authenticating as someone else
        previous_user = self._users.get(session_id)
        if previous_user is not None and previous_user != user_id:
            self._sessions.pop(previous_user, None)

        self._sessions[user_id] = session_id
        self._users[session_id] = user_id

    def lookup(self, user_id: str) -> SessionId | None:
        return self._sessions.get(user_id)

    def remove(self, session_id: SessionId) -> str | None:
        """Drop the entry owned by `session_id`, returning its user id if there was one."""
        user_id = self._users.pop(session_id, None)
        if user_id is not None and self._sessions.get(user_id) == session_id:
            del self._sessions[user_id]
        return user_id

    def clear(self) -> None:
        self._sessions.clear()
        self._users.clear()
