"""Tests for the CLI entry point."""

import json
import subprocess
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from buildlens_cli.cli import _build_store, main
from buildlens_store.gist import GistStore
from buildlens_store.models import BuildEntry
from buildlens_store.noop import NoOpStore
from buildlens_store.sqlite import SQLiteStore


def _make_config(project="webshop", **overrides):
    config = {
        "project": project,
        "check_pmd": False,
        "check_bug_patterns": False,
        "check_style": False,
        "check_coverage": False,
        "coverage_threshold": 85.0,
        "coverage_tolerance": 0.0,
        "available_checks": None,
        "store": "sqlite",
        "store_path": ".buildlens.db",
        "github_token": None,
    }
    config.update(overrides)
    return config


def _patch_common(mocker, tmp_path, config=None):
    """Patch load_config and _build_store; history lives in a real SQLite file under tmp_path."""
    cfg = config or _make_config()
    db_path = str(tmp_path / "history.db")
    mocker.patch("buildlens_core.config.load_config", return_value=cfg)
    mocker.patch("buildlens_cli.auth.resolve_github_token", return_value="tok")
    mocker.patch("buildlens_cli.cli._build_store", side_effect=lambda _cfg: SQLiteStore(db_path=db_path))
    return cfg, db_path


def _seed(db_path, *entries):
    with SQLiteStore(db_path=db_path) as store:
        for entry in entries:
            store.save(entry)


def _entry(number, outcome="SUCCESS", warnings=None, coverage=None, project="webshop"):
    return BuildEntry(
        project=project,
        number=number,
        outcome=outcome,
        recorded_at="2024-05-01T10:00:00+00:00",
        warnings=warnings or {},
        coverage=coverage or {},
    )


def _stored(db_path, project="webshop"):
    with SQLiteStore(db_path=db_path) as store:
        return {e.number: e for e in store.list_builds(project)}


# ---------------------------------------------------------------------------
# record command
# ---------------------------------------------------------------------------


class TestRecordCommand:
    def test_records_build_with_summaries(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(
            main,
            ["record", "--number", "7", "--pmd", "4", "--style", "12", "--line-coverage", "81.5"],
        )

        assert result.exit_code == 0, result.output
        entry = _stored(db_path)[7]
        assert entry.outcome == "SUCCESS"
        assert entry.warnings == {"pmd": 4, "style": 12}
        assert entry.coverage == {"line": 81.5}

    def test_tools_not_passed_are_not_stored(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)

        CliRunner().invoke(main, ["record", "--number", "1"])

        entry = _stored(db_path)[1]
        assert entry.warnings == {}
        assert entry.coverage == {}

    def test_outcome_is_case_insensitive(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(main, ["record", "--number", "2", "--outcome", "unstable"])

        assert result.exit_code == 0, result.output
        assert _stored(db_path)[2].outcome == "UNSTABLE"

    def test_explicit_project_wins_over_config(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)

        CliRunner().invoke(main, ["record", "--project", "backoffice", "--number", "1"])

        assert 1 in _stored(db_path, project="backoffice")
        assert _stored(db_path) == {}

    def test_missing_project_is_usage_error(self, mocker, tmp_path):
        _patch_common(mocker, tmp_path, config=_make_config(project=None))

        result = CliRunner().invoke(main, ["record", "--number", "1"])

        assert result.exit_code != 0
        assert "No project given" in result.output

    def test_coverage_out_of_range_rejected(self, mocker, tmp_path):
        _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(main, ["record", "--number", "1", "--line-coverage", "120"])

        assert result.exit_code == 2
        assert "percentage" in result.output

    def test_negative_warning_count_rejected(self, mocker, tmp_path):
        _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(main, ["record", "--number", "1", "--pmd", "-3"])

        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# check command
# ---------------------------------------------------------------------------


class TestCheckCommand:
    def test_warning_regression_fails_and_marks_build(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(
            db_path,
            _entry(1, warnings={"pmd": 5}),
            _entry(2, warnings={"pmd": 5}),
            _entry(3, warnings={"pmd": 8}),
        )

        result = CliRunner().invoke(main, ["check", "--pmd"])

        assert result.exit_code == 1
        assert "build #2" in result.output
        assert "3 new warning(s)" in result.output
        assert _stored(db_path)[3].outcome == "FAILURE"

    def test_no_regression_exits_zero(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, warnings={"pmd": 5}), _entry(2, warnings={"pmd": 4}))

        result = CliRunner().invoke(main, ["check", "--pmd"])

        assert result.exit_code == 0, result.output
        assert "No regressions detected for build #2" in result.output
        assert _stored(db_path)[2].outcome == "SUCCESS"

    def test_no_update_keeps_outcome(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, warnings={"pmd": 1}), _entry(2, warnings={"pmd": 2}))

        result = CliRunner().invoke(main, ["check", "--pmd", "--no-update"])

        assert result.exit_code == 1
        assert _stored(db_path)[2].outcome == "SUCCESS"

    def test_checks_requested_build_number(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(
            db_path,
            _entry(1, warnings={"pmd": 1}),
            _entry(2, warnings={"pmd": 9}),
            _entry(3, warnings={"pmd": 0}),
        )

        result = CliRunner().invoke(main, ["check", "--pmd", "--number", "2"])

        assert result.exit_code == 1
        assert "build #1" in result.output

    def test_coverage_threshold_exemption_passes(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, coverage={"line": 90.0}), _entry(2, coverage={"line": 86.0}))

        result = CliRunner().invoke(main, ["check", "--coverage"])

        assert result.exit_code == 0, result.output
        assert "not failing build" in result.output

    def test_threshold_option_overrides_config(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, coverage={"line": 90.0}), _entry(2, coverage={"line": 86.0}))

        result = CliRunner().invoke(main, ["check", "--coverage", "--threshold", "88"])

        assert result.exit_code == 1
        assert "4.0%" in result.output

    def test_checks_enabled_in_config(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path, config=_make_config(check_style=True))
        _seed(db_path, _entry(1, warnings={"style": 1}), _entry(2, warnings={"style": 2}))

        result = CliRunner().invoke(main, ["check"])

        assert result.exit_code == 1
        assert "Checkstyle Warnings" in result.output

    def test_cli_flag_disables_config_check(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path, config=_make_config(check_style=True))
        _seed(db_path, _entry(1, warnings={"style": 1}), _entry(2, warnings={"style": 2}))

        result = CliRunner().invoke(main, ["check", "--no-style"])

        assert result.exit_code == 0, result.output

    def test_github_format_emits_annotations(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(
            db_path,
            _entry(1, coverage={"line": 95.0, "branch": 60.0}),
            _entry(2, coverage={"line": 90.0, "branch": 50.0}),
        )

        result = CliRunner().invoke(main, ["check", "--coverage", "--format", "github"])

        assert result.exit_code == 1
        lines = result.output.splitlines()
        assert any(line.startswith("::error ::") and "branchcoverage" in line for line in lines)
        assert any(line.startswith("::notice ::") and "linecoverage" in line for line in lines)

    def test_json_format(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, warnings={"bug_patterns": 2}), _entry(2, warnings={"bug_patterns": 3}))

        result = CliRunner().invoke(main, ["check", "--bug-patterns", "--format", "json"])

        payload = json.loads(result.output)
        assert payload["build"] == 2
        assert payload["build_should_fail"] is True
        assert payload["findings"][0]["check"] == "bug_patterns"
        assert payload["findings"][0]["baseline"] == 1
        assert payload["findings"][0]["delta"] == 1
        assert isinstance(payload["findings"][0]["delta"], int)
        assert isinstance(payload["findings"][0]["current"], int)
        assert isinstance(payload["findings"][0]["baseline_value"], int)

    def test_json_format_keeps_coverage_fractional(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, coverage={"line": 80.5}), _entry(2, coverage={"line": 70.25}))

        result = CliRunner().invoke(main, ["check", "--coverage", "--format", "json"])

        finding = json.loads(result.output)["findings"][0]
        assert finding["current"] == 70.25
        assert finding["delta"] == 10.25

    def test_quoted_flag_in_config_is_usage_error(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path, config=_make_config(check_pmd="false"))
        _seed(db_path, _entry(1, warnings={"pmd": 1}), _entry(2, warnings={"pmd": 5}))

        result = CliRunner().invoke(main, ["check"])

        assert result.exit_code == 2
        assert "check_pmd must be true or false" in result.output

    def test_unreadable_gist_history_skips_check(self, mocker):
        store = object.__new__(GistStore)
        store._gist_id = "abc123"
        store._gh = MagicMock()
        store._gh.get_gist.side_effect = RuntimeError("503 Service Unavailable")
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config())
        mocker.patch("buildlens_cli.cli._build_store", return_value=store)

        result = CliRunner().invoke(main, ["check", "--pmd"])

        assert result.exit_code == 0, result.output
        assert "Could not read build history" in result.output
        assert "No builds recorded" not in result.output
        store._gh.get_gist.return_value.edit.assert_not_called()

    def test_empty_gist_history_still_reported(self, mocker):
        store = object.__new__(GistStore)
        store._gist_id = "abc123"
        store._gh = MagicMock()
        store._gh.get_gist.return_value.files = {}
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config())
        mocker.patch("buildlens_cli.cli._build_store", return_value=store)

        result = CliRunner().invoke(main, ["check", "--pmd"])

        assert result.exit_code != 0
        assert "No builds recorded" in result.output

    def test_failed_build_is_skipped_as_baseline_next_time(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1, warnings={"pmd": 5}), _entry(2, warnings={"pmd": 9}))

        CliRunner().invoke(main, ["check", "--pmd"])
        _seed(db_path, _entry(3, warnings={"pmd": 7}))
        result = CliRunner().invoke(main, ["check", "--pmd"])

        assert result.exit_code == 1
        assert "build #1" in result.output

    def test_unknown_build_number(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1))

        result = CliRunner().invoke(main, ["check", "--number", "42"])

        assert result.exit_code != 0
        assert "Build #42 is not recorded" in result.output

    def test_empty_history(self, mocker, tmp_path):
        _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(main, ["check"])

        assert result.exit_code != 0
        assert "No builds recorded" in result.output

    def test_invalid_available_checks_is_usage_error(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path, config=_make_config(available_checks=["emma"]))
        _seed(db_path, _entry(1))

        result = CliRunner().invoke(main, ["check"])

        assert result.exit_code == 2
        assert "Unknown check families" in result.output

    def test_errors_when_noop_store(self, mocker):
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config(store="noop"))
        mocker.patch("buildlens_cli.cli._build_store", return_value=NoOpStore())

        result = CliRunner().invoke(main, ["check"])

        assert result.exit_code != 0
        assert "No store configured" in result.output


# ---------------------------------------------------------------------------
# history command
# ---------------------------------------------------------------------------


class TestHistoryCommand:
    def test_shows_table_when_builds_exist(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, _entry(1), _entry(2, outcome="FAILURE"))

        result = CliRunner().invoke(main, ["history"])

        assert result.exit_code == 0, result.output
        assert "#1" in result.output
        assert "#2" in result.output
        assert "FAILURE" in result.output

    def test_shows_empty_message_when_no_builds(self, mocker, tmp_path):
        _patch_common(mocker, tmp_path)

        result = CliRunner().invoke(main, ["history"])

        assert result.exit_code == 0
        assert "No builds recorded" in result.output

    def test_errors_when_noop_store(self, mocker):
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config(store="noop"))
        mocker.patch("buildlens_cli.cli._build_store", return_value=NoOpStore())

        result = CliRunner().invoke(main, ["history"])

        assert result.exit_code != 0
        assert "No store configured" in result.output

    def test_limit_applied(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, *[_entry(i) for i in range(1, 11)])

        result = CliRunner().invoke(main, ["history", "--limit", "3"])

        assert result.exit_code == 0
        assert result.output.count("#") == 3
        assert "#10" in result.output
        assert "#7" not in result.output

    def test_non_positive_limit_rejected(self, mocker, tmp_path):
        _, db_path = _patch_common(mocker, tmp_path)
        _seed(db_path, *[_entry(i) for i in range(1, 6)])

        result = CliRunner().invoke(main, ["history", "--limit", "-1"])

        assert result.exit_code == 2
        assert "#1" not in result.output


# ---------------------------------------------------------------------------
# auth.py
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_accepts_gh_token_env_var(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", "gh-env-token")
        with patch("subprocess.run") as mock_run:
            assert resolve_github_token() == "gh-env-token"
        mock_run.assert_not_called()

    def test_falls_back_to_gh_cli(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            result = resolve_github_token()
        assert result == "gh-token"

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_returns_error(self, monkeypatch):
        from buildlens_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="")
            result = resolve_github_token()
        assert result is None


# ---------------------------------------------------------------------------
# _build_store and main wiring
# ---------------------------------------------------------------------------


class TestBuildStore:
    def test_returns_sqlite_by_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = _build_store({})
        assert isinstance(store, SQLiteStore)
        store.close()
        assert (tmp_path / ".buildlens.db").exists()

    def test_returns_sqlite_store_at_configured_path(self, tmp_path):
        store = _build_store({"store": "sqlite", "store_path": str(tmp_path / "test.db")})
        assert isinstance(store, SQLiteStore)
        store.close()

    def test_returns_noop_when_explicitly_set(self):
        assert isinstance(_build_store({"store": "noop"}), NoOpStore)

    def test_returns_gist_store_when_configured(self):
        with patch("github.Github"):  # Github is a local import inside GistStore.__init__
            store = _build_store({"store": "gist", "gist_id": "abc123", "github_token": "tok"})
        assert isinstance(store, GistStore)

    def test_falls_back_to_noop_when_gist_id_missing(self):
        assert isinstance(_build_store({"store": "gist", "github_token": "tok"}), NoOpStore)

    def test_falls_back_to_noop_when_token_missing(self):
        assert isinstance(_build_store({"store": "gist", "gist_id": "abc123"}), NoOpStore)

    def test_unknown_store_type_raises(self):
        import pytest

        with pytest.raises(ValueError):
            _build_store({"store": "mongo"})


class TestMain:
    def test_unknown_store_is_usage_error(self, mocker):
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config(store="mongo"))

        result = CliRunner().invoke(main, ["history"])

        assert result.exit_code == 2
        assert "Unknown store type" in result.output

    def test_gist_store_resolves_token_via_gh(self, mocker):
        mocker.patch("buildlens_core.config.load_config", return_value=_make_config(store="gist", gist_id="abc"))
        mocker.patch("buildlens_cli.auth.resolve_github_token", return_value="gh-token")
        build_store = mocker.patch("buildlens_cli.cli._build_store", return_value=NoOpStore())

        CliRunner().invoke(main, ["history"])

        assert build_store.call_args[0][0]["github_token"] == "gh-token"
