"""Tests for the reconcile command and CLI entry point."""

from unittest.mock import MagicMock, patch

import pytest

from fundsync.__main__ import main, parse_args
from fundsync.cli.output import write_action_outputs
from fundsync.cli.reconcile import build_failure_sink, reconcile_request, run_reconcile
from fundsync.config import Settings
from fundsync.errors import ErrorKind, MalformedInputError, PreconditionFailedError
from fundsync.github.client import GitHubAuthError
from fundsync.models import Outcome, OutcomeStatus
from fundsync.services import GitHubIssueFailureSink, LoggingFailureSink


@pytest.fixture
def settings():
    return Settings(
        github_token="t",
        database_url="sqlite://",
        fulfill_base_url="https://x/fullfill",
        tracker_repository="org/repo",
        fork_ready_delay=0,
    )


@pytest.fixture
def source(request_42):
    source = MagicMock()
    source.get_approved.return_value = request_42
    return source


class TestReconcileRequest:
    """Tests for reconcile_request."""

    def test_runs_driver(self, settings, github, source):
        """An approved request is reconciled end to end."""
        outcome = reconcile_request(42, settings, github, source, sleep=MagicMock())

        assert outcome.status == OutcomeStatus.CREATED
        source.get_approved.assert_called_once_with(42)

    def test_invalid_id(self, settings, github, source):
        """Non-positive ids fail before any lookup."""
        outcome = reconcile_request(0, settings, github, source)

        assert outcome.error_kind == ErrorKind.PRECONDITION_FAILED
        source.get_approved.assert_not_called()

    def test_unapproved_request(self, settings, github, source):
        """Lookup failures become Failed outcomes with no remote calls."""
        source.get_approved.side_effect = PreconditionFailedError("not approved")

        outcome = reconcile_request(42, settings, github, source)

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.error_kind == ErrorKind.PRECONDITION_FAILED
        assert github.calls == []

    def test_raising_sink_does_not_mask_outcome(self, settings, github, source):
        """A sink that raises is logged; the Failed outcome is still returned."""
        source.get_approved.side_effect = PreconditionFailedError("not approved")
        sink = MagicMock()
        sink.report.side_effect = RuntimeError("sink down")

        outcome = reconcile_request(42, settings, github, source, failure_sink=sink)

        assert outcome.error_kind == ErrorKind.PRECONDITION_FAILED

    def test_lookup_failure_reported(self, settings, github, source):
        """Failures before the pipeline still reach the failure sink."""
        source.get_approved.side_effect = PreconditionFailedError("not approved")
        sink = MagicMock()

        outcome = reconcile_request(42, settings, github, source, failure_sink=sink, origin_url="o")

        sink.report.assert_called_once_with(42, outcome, "o")

    def test_pipeline_failure_reported(self, settings, github, source, request_42):
        """The driver hands pipeline failures to the sink."""
        source.get_approved.return_value = request_42.model_copy(
            update={"target_repository": "https://github.com/acme/missing"}
        )
        sink = MagicMock()

        outcome = reconcile_request(42, settings, github, source, failure_sink=sink)

        assert outcome.error_kind == ErrorKind.REMOTE_NOT_FOUND
        sink.report.assert_called_once_with(42, outcome, None)

    def test_dry_run_passed_through(self, settings, github, source):
        """Dry run reaches the driver."""
        outcome = reconcile_request(42, settings, github, source, dry_run=True)

        assert outcome.status == OutcomeStatus.SKIPPED
        assert github.writes == []


class TestRunReconcile:
    """Tests for run_reconcile."""

    @pytest.fixture
    def patched(self, monkeypatch):
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
        with (
            patch("fundsync.cli.reconcile.build_client") as mock_client,
            patch("fundsync.cli.reconcile.SqlRequestRepository") as mock_repo,
            patch("fundsync.cli.reconcile.reconcile_request") as mock_reconcile,
            patch("fundsync.cli.reconcile.refresh_cache") as mock_refresh,
            patch("fundsync.cli.reconcile.build_failure_sink") as mock_sink,
        ):
            mock_client.return_value = MagicMock()
            yield {
                "reconcile": mock_reconcile,
                "refresh": mock_refresh,
                "sink": mock_sink,
                "repo": mock_repo,
            }

    def test_requires_database_url(self, capsys):
        """Missing database URL exits with an error."""
        assert run_reconcile(42, Settings(database_url=None)) == 1
        assert "No database URL configured" in capsys.readouterr().out

    def test_created_refreshes_cache(self, patched, settings):
        """A successful run refreshes the cache."""
        settings.cache_url = "https://site/api/cache"
        patched["reconcile"].return_value = Outcome.created("https://pr/1")

        assert run_reconcile(42, settings) == 0
        patched["refresh"].assert_called_once_with("https://site/api/cache")
        patched["sink"].assert_not_called()

    def test_no_refresh_flag(self, patched, settings):
        """--no-cache-refresh suppresses the refresh."""
        settings.cache_url = "https://site/api/cache"
        patched["reconcile"].return_value = Outcome.created("https://pr/1")

        run_reconcile(42, settings, refresh=False)

        patched["refresh"].assert_not_called()

    def test_failure_exits_nonzero(self, patched, settings):
        """Failed runs get the sink and origin link, skip the refresh and exit 1."""
        settings.cache_url = "https://site/api/cache"
        patched["reconcile"].return_value = Outcome.failed(ErrorKind.REMOTE_CONFLICT, "409")

        assert run_reconcile(42, settings, origin_url="https://o") == 1
        kwargs = patched["reconcile"].call_args.kwargs
        assert kwargs["failure_sink"] is patched["sink"].return_value
        assert kwargs["origin_url"] == "https://o"
        patched["refresh"].assert_not_called()

    def test_writes_action_outputs(self, patched, settings, tmp_path, monkeypatch):
        """status and pr-url land in $GITHUB_OUTPUT."""
        output = tmp_path / "out"
        monkeypatch.setenv("GITHUB_OUTPUT", str(output))
        patched["reconcile"].return_value = Outcome.created("https://pr/1")

        run_reconcile(42, settings)

        assert output.read_text() == "status=success\npr-url=https://pr/1\n"

    def test_auth_failure(self, settings):
        """Missing credentials exit with an error."""
        with patch(
            "fundsync.cli.reconcile.build_client", side_effect=GitHubAuthError("No token")
        ):
            assert run_reconcile(42, settings) == 1

    def test_invalid_database_url_fails_cleanly(self, settings, tmp_path, monkeypatch):
        """An unparseable database URL is a Failed outcome, not a traceback."""
        output = tmp_path / "out"
        monkeypatch.setenv("GITHUB_OUTPUT", str(output))
        settings.database_url = "not a url"
        sink = MagicMock()

        with patch("fundsync.cli.reconcile.build_failure_sink", return_value=sink):
            assert run_reconcile(42, settings, origin_url="https://o") == 1

        assert output.read_text() == "status=error\npr-url=\n"
        outcome = sink.report.call_args.args[1]
        assert outcome.error_kind == ErrorKind.MALFORMED_INPUT
        assert sink.report.call_args.args[2] == "https://o"

    def test_invalid_failure_repository_fails_cleanly(self, settings, monkeypatch):
        """A malformed failure repository fails the run with exit code 1."""
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
        settings.failure_repository = "repo-only"

        with patch("fundsync.cli.reconcile.reconcile_request") as mock_reconcile:
            assert run_reconcile(42, settings) == 1

        mock_reconcile.assert_not_called()


class TestBuildFailureSink:
    """Tests for build_failure_sink."""

    def test_logging_by_default(self, settings):
        """Without a home repository failures are only logged."""
        assert isinstance(build_failure_sink(settings, MagicMock()), LoggingFailureSink)

    def test_issue_sink_when_configured(self, settings):
        """A configured repository gets error issues."""
        settings.failure_repository = "org/repo"
        assert isinstance(build_failure_sink(settings, MagicMock()), GitHubIssueFailureSink)

    def test_invalid_repository(self, settings):
        """A repository without an owner is malformed configuration."""
        settings.failure_repository = "repo-only"
        with pytest.raises(MalformedInputError, match="Invalid failure repository"):
            build_failure_sink(settings, MagicMock())


class TestWriteActionOutputs:
    """Tests for write_action_outputs."""

    def test_noop_outside_actions(self, monkeypatch):
        """Nothing is written without GITHUB_OUTPUT."""
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
        assert write_action_outputs({"status": "success"}) is False

    def test_appends(self, tmp_path, monkeypatch):
        """Existing output lines are preserved."""
        output = tmp_path / "out"
        output.write_text("earlier=1\n")
        monkeypatch.setenv("GITHUB_OUTPUT", str(output))

        assert write_action_outputs({"status": "skipped"}) is True
        assert output.read_text() == "earlier=1\nstatus=skipped\n"


class TestMain:
    """Tests for argument parsing and main."""

    def test_parse_args(self):
        """Flags are parsed."""
        args = parse_args(["42", "--dry-run", "-vv", "--origin-url", "https://o"])
        assert args.request_id == 42
        assert args.dry_run is True
        assert args.verbose == 2
        assert args.origin_url == "https://o"
        assert args.no_cache_refresh is False

    def test_request_id_must_be_int(self):
        """Non-numeric ids are rejected by argparse."""
        with pytest.raises(SystemExit):
            parse_args(["abc"])

    def test_main_exits_with_run_code(self):
        """main builds settings from flags and exits with the run's code."""
        with (
            patch("fundsync.__main__.setup_logging"),
            patch("fundsync.cli.reconcile.run_reconcile", return_value=1) as mock_run,
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["7", "--database-url", "sqlite://", "--no-cache-refresh"])

        assert exc_info.value.code == 1
        args, kwargs = mock_run.call_args
        assert args[0] == 7
        assert args[1].database_url == "sqlite://"
        assert kwargs["refresh"] is False


class TestSettings:
    """Tests for Settings."""

    def test_env_prefix(self, monkeypatch):
        """Settings are read from FUNDSYNC_ variables."""
        monkeypatch.setenv("FUNDSYNC_DATABASE_URL", "sqlite:///w.db")
        monkeypatch.setenv("FUNDSYNC_FORK_READY_DELAY", "1.5")
        settings = Settings()
        assert settings.database_url == "sqlite:///w.db"
        assert settings.fork_ready_delay == 1.5

    def test_defaults(self, monkeypatch):
        """Production link formats are the defaults."""
        monkeypatch.delenv("FUNDSYNC_FULFILL_BASE_URL", raising=False)
        settings = Settings()
        assert settings.fulfill_base_url.endswith("/fullfill")
        assert settings.tracker_repository == "oss-wishlist/wishlists"
