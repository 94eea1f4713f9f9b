# Overview: Pytest coverage for the flask CLI command groups.

from ordertrack.models import User


class TestUserCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["users", "create", "--email", "cli@example.com", "--password", "Password123!"])
        assert result.exit_code == 0, result.output
        assert db_session.query(User).filter_by(email="cli@example.com").count() == 1

        listing = runner.invoke(args=["users", "list"])
        assert "cli@example.com" in listing.output

    def test_weak_password_fails(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["users", "create", "--email", "cli@example.com", "--password", "weak"])

        assert result.exit_code != 0
        assert db_session.query(User).count() == 0


class TestMaintenanceCommands:

    def test_cleanup_sessions(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])
        assert result.exit_code == 0
        assert "Deleted 0" in result.output
