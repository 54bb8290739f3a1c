import logging
import os

import pytest

from conftest import FakePlatformClient
from covgate.errors import ConfigurationError, PlatformError, UnacceptableMetricError
from covgate.report import CodeToTestRatioSummary, CoverageSummary, MetricsReport
from covgate.settings import Config, expand_env


def _write(tmp_path, text, name=".covgate.yml"):
    path = tmp_path / name
    path.write_text(text)
    return path


def _load(tmp_path, text, environ=None):
    _write(tmp_path, text)
    return Config.load(wd=str(tmp_path), environ=environ or {})


def test_expand_env():
    env = {"OWNER": "acme", "NAME": "api"}
    assert expand_env("${OWNER}/$NAME", env) == "acme/api"
    assert expand_env("x${UNSET}y", env) == "xy"


def test_load_keeps_thresholds_as_strings(tmp_path):
    config = _load(tmp_path, """
repository: ${OWNER}/api
coverage:
  acceptable: ${MIN_COVERAGE}%
codeToTestRatio:
  code: ['**/*.py']
  acceptable: 1:1.2
testExecutionTime:
  acceptable: 60
push:
  if: is_default_branch
""", environ={"OWNER": "acme", "MIN_COVERAGE": "70"})
    assert config.loaded() is True
    assert config.repository == "acme/api"
    assert config.coverage.acceptable == "70%"
    assert config.code_to_test_ratio.acceptable == "1:1.2"
    assert config.test_execution_time.acceptable == "60"
    assert config.push.if_ == "is_default_branch"
    assert config.root() == os.path.normpath(str(tmp_path))


def test_repository_falls_back_to_environment(tmp_path):
    config = Config.load(wd=str(tmp_path), environ={"GITHUB_REPOSITORY": "acme/web"})
    assert config.loaded() is False
    assert config.repository == "acme/web"
    assert config.root() == str(tmp_path)


def test_default_file_discovery(tmp_path):
    _write(tmp_path, "repository: acme/found\n", name="covgate.yml")
    assert Config.load(wd=str(tmp_path), environ={}).repository == "acme/found"


def test_duplicate_default_files(tmp_path):
    _write(tmp_path, "repository: acme/a\n", name=".covgate.yml")
    _write(tmp_path, "repository: acme/b\n", name="covgate.yml")
    with pytest.raises(ConfigurationError, match="duplicate config file"):
        Config.load(wd=str(tmp_path), environ={})


def test_explicit_path(tmp_path):
    (tmp_path / "ci").mkdir()
    _write(tmp_path, "repository: acme/explicit\n", name="ci/gates.yml")
    config = Config.load("ci/gates.yml", wd=str(tmp_path), environ={})
    assert config.repository == "acme/explicit"
    assert config.root() == os.path.normpath(str(tmp_path / "ci"))


@pytest.mark.parametrize(
    "text",
    ["coverage: [", "- one\n- two\n", "coverage:\n  acceptable: [1, 2]\n"],
)
def test_invalid_config(tmp_path, text):
    with pytest.raises(ConfigurationError):
        _load(tmp_path, text)


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigurationError, match="failed to read config"):
        Config.load("nope.yml", wd=str(tmp_path), environ={})


def test_acceptable(tmp_path):
    config = _load(tmp_path, """
coverage:
  acceptable: 80%
codeToTestRatio:
  acceptable: 1:5
testExecutionTime:
  acceptable: 5m
""")
    ok = MetricsReport(coverage=CoverageSummary(covered=90, total=100), test_execution_time=60e9)
    config.acceptable(ok)

    # no code patterns: the ratio threshold is not checked
    report = MetricsReport(code_to_test_ratio=CodeToTestRatioSummary(code=10, test=1))
    config.acceptable(report)

    low = MetricsReport(coverage=CoverageSummary(covered=50, total=100))
    with pytest.raises(UnacceptableMetricError, match="code coverage is 50.0%"):
        config.acceptable(low)

    slow = MetricsReport(test_execution_time=6 * 60e9)
    with pytest.raises(UnacceptableMetricError, match="above the accepted 5m0s"):
        config.acceptable(slow)


def test_unconfigured_metrics_are_not_checked():
    report = MetricsReport(coverage=CoverageSummary(covered=0, total=100), test_execution_time=1e15)
    Config().acceptable(report)


def _gated(tmp_path, make_assembler, text, client=None):
    config = _load(tmp_path, text)
    client = client or FakePlatformClient()
    config.with_assembler(make_assembler(client=client))
    return config, client


def test_push_ready_on_default_branch(tmp_path, make_assembler):
    config, client = _gated(tmp_path, make_assembler, "push:\n  if: is_default_branch\n")
    assert config.push_ready() is True
    assert "get_default_branch" in client.calls


def test_push_skipped_with_log(tmp_path, make_assembler, caplog):
    client = FakePlatformClient(current_branch="feature/x")
    config, _ = _gated(tmp_path, make_assembler, "push:\n  if: is_default_branch\n", client=client)
    with caplog.at_level(logging.INFO, logger="covgate.settings"):
        assert config.push_ready() is False
    assert "Skip pushing reports" in caplog.text
    assert "is_default_branch" in caplog.text


def test_disabled_or_absent_sections_make_no_calls(tmp_path, make_assembler):
    config, client = _gated(tmp_path, make_assembler, """
push:
  enable: false
  if: is_default_branch
comment:
  enable: false
central:
  enable: false
""")
    assert config.push_ready() is False
    assert config.comment_ready() is False
    assert config.diff_ready() is False
    assert config.central_ready() is False
    assert config.central_push_ready() is False
    assert client.calls == []


def test_empty_condition_makes_no_calls(tmp_path, make_assembler):
    config, client = _gated(tmp_path, make_assembler, "push: {}\ncomment: {}\ndiff:\n  path: base.json\n")
    assert config.push_ready() is True
    assert config.comment_ready() is True
    assert config.diff_ready() is True
    assert client.calls == []


def test_diff_requires_a_source(tmp_path, make_assembler):
    config, _ = _gated(tmp_path, make_assembler, "diff:\n  if: 'true'\n")
    assert config.diff_ready() is False


@pytest.mark.parametrize("cond", ["is_default_branch &&", "hour", "unknown_flag"])
def test_expression_errors_skip_the_action(tmp_path, make_assembler, caplog, cond):
    config, _ = _gated(tmp_path, make_assembler, f"comment:\n  if: '{cond}'\n")
    with caplog.at_level(logging.WARNING, logger="covgate.settings"):
        assert config.comment_ready() is False
    assert "Skip commenting" in caplog.text


def test_platform_errors_propagate(tmp_path, make_assembler):
    client = FakePlatformClient(default_branch=PlatformError("unreachable"))
    config, _ = _gated(tmp_path, make_assembler, "comment:\n  if: is_pull_request\n", client=client)
    with pytest.raises(PlatformError):
        config.comment_ready()


def test_central_push_ready(tmp_path, make_assembler):
    config, client = _gated(tmp_path, make_assembler, """
central:
  push:
    if: is_default_branch
""")
    assert config.central_ready() is True
    assert client.calls == []
    assert config.central_push_ready() is True

    skipped = FakePlatformClient(current_branch="feature/x")
    config, _ = _gated(tmp_path, make_assembler, "central:\n  push:\n    if: is_default_branch\n", client=skipped)
    assert config.central_push_ready() is False


def test_central_without_push_section(tmp_path, make_assembler):
    config, _ = _gated(tmp_path, make_assembler, "central: {}\n")
    assert config.central_ready() is True
    assert config.central_push_ready() is False


def test_build_central_config(tmp_path):
    config = _load(tmp_path, "repository: acme/api\ncentral:\n  root: badges\n")
    config.build_central_config()
    assert config.central.root == os.path.normpath(str(tmp_path / "badges"))
    assert config.central.reports.datastores == ["local://reports"]
    assert config.central.badges.datastores == ["local://reports"]


def test_build_central_config_requires_repository(tmp_path):
    config = _load(tmp_path, "central: {}\n")
    with pytest.raises(ConfigurationError, match="repository"):
        config.build_central_config()


def test_deeply_nested_condition_skips_the_action(tmp_path, make_assembler, caplog):
    config, _ = _gated(tmp_path, make_assembler, "comment:\n  if: '" + "!" * 3000 + "true'\n")
    with caplog.at_level(logging.WARNING, logger="covgate.settings"):
        assert config.comment_ready() is False
    assert "nested too deeply" in caplog.text or "syntax error" in caplog.text


def test_env_values_cannot_change_the_document(tmp_path):
    value = "it's # not: a comment\ncomment:\n  enable: false"
    config = _load(tmp_path, """
push:
  if: env.RELEASE_NOTE == '${NOTE}'
comment:
  if: ${COMMENT_IF}
""", environ={"NOTE": value, "COMMENT_IF": "is_pull_request"})
    assert config.push.if_ == f"env.RELEASE_NOTE == '{value}'"
    assert config.comment.enable is None
    assert config.comment.if_ == "is_pull_request"
