"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner
from loguru import logger

from issue_stats import cli
from test_fetching import FakeClient, issue_node, issues_response


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger.remove()


class FakeClientFactory:
    """Replaces GraphQLClient in the cli module; every instance shares one FakeClient."""

    def __init__(self, responses=()):
        self.client = FakeClient(responses)

    def __call__(self, *args, **kwargs):
        return self

    def execute(self, query, variables):
        return self.client.execute(query, variables)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


def plot_args(tmp_path, *extra):
    return [
        "plot-opened-and-closed",
        "--page-size", "2",
        "--pages", "3",
        "--persisted-data-dir", str(tmp_path / "pages"),
        "--week-stats-file", str(tmp_path / "week.tsv"),
        "--accumulated-stats-file", str(tmp_path / "accumulated.tsv"),
        "--origin", "2010-06-21T00:00:00Z",
        "--log-file", "",
        *extra,
    ]


def test_plot_opened_and_closed_writes_reports(tmp_path, monkeypatch):
    factory = FakeClientFactory([issues_response([
        issue_node(1, "2010-06-21T10:00:00Z", "2010-07-06T10:00:00Z", "CLOSED", ["C-bug"]),
        issue_node(2, "2010-06-29T10:00:00Z"),
    ])])
    monkeypatch.setattr(cli, "GraphQLClient", factory)

    result = CliRunner().invoke(cli.main, plot_args(tmp_path))

    assert result.exit_code == 0, result.output
    week = (tmp_path / "week.tsv").read_text(encoding="utf-8").splitlines()
    accumulated = (tmp_path / "accumulated.tsv").read_text(encoding="utf-8").splitlines()
    assert week[1:] == [
        "0\t1\t0\t0\t0\t0\t0",
        "1\t0\t0\t1\t0\t0\t0",
        "2\t0\t0\t0\t1\t0\t0",
    ]
    assert accumulated[-1] == "2\t0\t0\t1\t1\t2"
    assert factory.client.calls[0]["owner"] == "rust-lang"
    assert factory.client.calls[0]["pageSize"] == 2


def test_plot_second_run_uses_cache(tmp_path, monkeypatch):
    first = FakeClientFactory([issues_response([issue_node(1, "2010-06-21T10:00:00Z", labels=["C-cleanup"])])])
    monkeypatch.setattr(cli, "GraphQLClient", first)
    assert CliRunner().invoke(cli.main, plot_args(tmp_path)).exit_code == 0
    report = (tmp_path / "week.tsv").read_text(encoding="utf-8")

    second = FakeClientFactory()
    monkeypatch.setattr(cli, "GraphQLClient", second)
    result = CliRunner().invoke(cli.main, plot_args(tmp_path))

    assert result.exit_code == 0, result.output
    assert second.client.calls == []
    assert (tmp_path / "week.tsv").read_text(encoding="utf-8") == report


def test_plot_month_periods(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "GraphQLClient", FakeClientFactory([issues_response([
        issue_node(1, "2023-11-02T00:00:00Z", labels=["C-bug"]),
        issue_node(2, "2023-03-15T00:00:00Z", labels=["C-bug"]),
    ])]))

    result = CliRunner().invoke(cli.main, plot_args(tmp_path, "--period", "month", "--coarse"))

    assert result.exit_code == 0, result.output
    week = (tmp_path / "week.tsv").read_text(encoding="utf-8").splitlines()
    assert week[0] == "Period\topened Bugs\topened Non-bugs\tclosed Bugs\tclosed Non-bugs"
    assert [line.split("\t")[0] for line in week[1:]] == [f"2023-{month:02d}" for month in range(3, 12)]
    assert week[2] == "2023-04\t0\t0\t0\t0"


def test_plot_label_filters_use_separate_caches(tmp_path, monkeypatch):
    joined = FakeClientFactory([issues_response([issue_node(1, "2010-06-21T10:00:00Z", labels=["C-bug"])])])
    monkeypatch.setattr(cli, "GraphQLClient", joined)
    assert CliRunner().invoke(cli.main, plot_args(tmp_path, "--label", "C-bug")).exit_code == 0

    split = FakeClientFactory([issues_response([issue_node(2, "2010-06-21T10:00:00Z", labels=["C-cleanup"])])])
    monkeypatch.setattr(cli, "GraphQLClient", split)
    result = CliRunner().invoke(cli.main, plot_args(tmp_path, "--label", "C", "--label", "bug"))

    assert result.exit_code == 0, result.output
    assert len(split.client.calls) == 1
    assert split.client.calls[0]["labels"] == ["C", "bug"]
    week = (tmp_path / "week.tsv").read_text(encoding="utf-8").splitlines()
    assert week[1] == "0\t0\t1\t0\t0\t0\t0"


def test_plot_server_error_exits_non_zero(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "GraphQLClient", FakeClientFactory([
        {"data": None, "errors": [{"message": "Bad credentials"}]},
    ]))

    result = CliRunner().invoke(cli.main, plot_args(tmp_path))

    assert result.exit_code == 1
    assert not (tmp_path / "week.tsv").exists()


def test_plot_unknown_category_label(tmp_path, monkeypatch):
    response = issues_response([issue_node(1, "2010-06-21T10:00:00Z", labels=["C-mystery"])])

    monkeypatch.setattr(cli, "GraphQLClient", FakeClientFactory([response]))
    assert CliRunner().invoke(cli.main, plot_args(tmp_path)).exit_code == 1

    monkeypatch.setattr(cli, "GraphQLClient", FakeClientFactory())
    result = CliRunner().invoke(cli.main, plot_args(tmp_path, "--skip-unclassifiable"))
    assert result.exit_code == 0, result.output


def test_issues_with_event(tmp_path, monkeypatch):
    reopened = issue_node(5, "2022-01-01T00:00:00Z")
    reopened["timelineItems"] = {
        "nodes": [{"__typename": "ReopenedEvent", "createdAt": "2022-02-03T00:00:00Z"}],
        "pageInfo": {"hasNextPage": False, "endCursor": None},
    }
    quiet = issue_node(6, "2022-01-02T00:00:00Z")
    quiet["timelineItems"] = {"nodes": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
    factory = FakeClientFactory([issues_response([reopened, quiet])])
    monkeypatch.setattr(cli, "GraphQLClient", factory)

    result = CliRunner().invoke(cli.main, [
        "issues-with-event",
        "--persisted-data-dir", str(tmp_path),
        "--log-file", "",
    ])

    assert result.exit_code == 0, result.output
    assert "https://github.com/rust-lang/rust/issues/5 Issue 5" in result.stdout
    assert "<REOPENED> 2022-02-03" in result.stdout
    assert "issues/6" not in result.stdout
    assert factory.client.calls[0]["states"] == ["OPEN"]
    assert factory.client.calls[0]["timelineItemTypes"] == ["REOPENED_EVENT"]


def test_issues_with_event_rejects_unsupported_type(tmp_path, monkeypatch):
    factory = FakeClientFactory()
    monkeypatch.setattr(cli, "GraphQLClient", factory)

    result = CliRunner().invoke(cli.main, [
        "issues-with-event",
        "--event", "PINNED_EVENT",
        "--persisted-data-dir", str(tmp_path),
        "--log-file", "",
    ])

    assert result.exit_code == 2
    assert factory.client.calls == []
