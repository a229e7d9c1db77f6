"""Tests for the user to session registry."""

from finman.core.modules.realtime.models import SessionId
from finman.core.modules.realtime.registry import ConnectionRegistry

S1 = SessionId("session-1")
S2 = SessionId("session-2")
S3 = SessionId("session-3")


class TestRegister:
    """Tests for register and lookup."""

    def test_lookup_registered_user(self):
        registry = ConnectionRegistry()
        registry.register("alice", S1)

        assert registry.lookup("alice") == S1
        assert len(registry) == 1

    def test_lookup_unknown_user(self):
        assert ConnectionRegistry().lookup("nobody") is None

    def test_last_write_wins(self):
        """Registering the same user again replaces the earlier session."""
        registry = ConnectionRegistry()
        registry.register("alice", S1)
        registry.register("alice", S2)

        assert registry.lookup("alice") == S2
        assert len(registry) == 1

    def test_empty_ids_ignored(self):
        registry = ConnectionRegistry()
        registry.register("", S1)
        registry.register("alice", SessionId(""))

        assert len(registry) == 0

    def test_session_reauthenticating_as_other_user(self):
        """A session belongs to at most one user."""
        registry = ConnectionRegistry()
        registry.register("alice", S1)
        registry.register("bob", S1)

        assert registry.lookup("alice") is None
        assert registry.lookup("bob") == S1


class TestRemove:
    """Tests for removing sessions on disconnect."""

    def test_remove_returns_user(self):
        registry = ConnectionRegistry()
        registry.register("alice", S1)

        assert registry.remove(S1) == "alice"
        assert registry.lookup("alice") is None

    def test_remove_unknown_session_is_noop(self):
        registry = ConnectionRegistry()
        registry.register("alice", S1)

        assert registry.remove(S3) is None
        assert registry.lookup("alice") == S1

    def test_stale_session_does_not_evict_replacement(self):
        """Disconnect of a superseded session keeps the newer mapping."""
        registry = ConnectionRegistry()
        registry.register("alice", S1)
        registry.register("alice", S2)

        assert registry.remove(S1) is None
        assert registry.lookup("alice") == S2

    def test_remove_only_affects_owner(self):
        registry = ConnectionRegistry()
        registry.register("alice", S1)
        registry.register("bob", S2)

        registry.remove(S1)

        assert registry.lookup("bob") == S2
        assert len(registry) == 1

    def test_clear(self):
        registry = ConnectionRegistry()
        registry.register("alice", S1)
        registry.register("bob", S2)

        registry.clear()

        assert len(registry) == 0
        assert registry.remove(S1) is None
