"""Tests for the row-level security context"""

from unittest.mock import MagicMock

from medibook import security_middleware


def _postgres_session():
    session = MagicMock()
    session.info = {}
    session.get_bind.return_value.dialect.name = "postgresql"
    return session


class TestRlsContext:
    def test_setting_is_transaction_local(self):
        session = _postgres_session()

        security_middleware.set_rls_context(session, "a1")

        statement, params = session.execute.call_args.args
        assert "'app.current_user_id', :user_id, true)" in str(statement)
        assert params == {"user_id": "a1"}

    def test_reapplied_when_a_new_transaction_begins(self):
        session = _postgres_session()
        security_middleware.set_rls_context(session, "a1")
        connection = MagicMock()
        connection.dialect.name = "postgresql"

        security_middleware._reapply_rls_context(session, None, connection)

        connection.execute.assert_called_once()
        assert connection.execute.call_args.args[1] == {"user_id": "a1"}

    def test_sessions_without_context_are_left_alone(self):
        connection = MagicMock()
        connection.dialect.name = "postgresql"

        security_middleware._reapply_rls_context(_postgres_session(), None, connection)

        connection.execute.assert_not_called()

    def test_other_dialects_are_untouched(self, db):
        security_middleware.set_rls_context(db, "a1")

        assert "rls_account_id" not in db.info
