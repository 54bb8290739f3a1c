"""Project configuration file (``.covgate.yml``).

Example::

    repository: acme/api
    coverage:
      acceptable: 60%
    codeToTestRatio:
      code: ['**/*.py', '!**/test_*.py']
      test: ['**/test_*.py']
      acceptable: 1:1.2
    testExecutionTime:
      acceptable: 5 min
    push:
      if: is_default_branch
    comment:
      if: is_pull_request
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from covgate.config import (
    DEFAULT_BADGES_DATASTORE,
    DEFAULT_CONFIG_FILE_PATHS,
    DEFAULT_REPORTS_DATASTORE,
)
from covgate.context.builder import ContextAssembler
from covgate.errors import ConfigurationError, ExpressionError
from covgate.gate import check_if
from covgate.metrics.thresholds import (
    code_to_test_ratio_acceptable,
    coverage_acceptable,
    execution_time_acceptable,
)
from covgate.report import MetricsReport

logger = logging.getLogger(__name__)

_ENV_REF_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class _ConfigLoader(yaml.SafeLoader):
    pass


# Numbers stay strings: thresholds such as "60" or "1:1.2" (a YAML 1.1
# sexagesimal float) are parsed by their own grammars.
_ConfigLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp) for tag, regexp in resolvers
        if tag not in ("tag:yaml.org,2002:int", "tag:yaml.org,2002:float")
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def expand_env(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Replace ``${VAR}`` and ``$VAR`` with environment values (unset -> empty)."""
    env = environ if environ is not None else os.environ

    def _replace(match: re.Match) -> str:
        return env.get(match.group(1) or match.group(2), "")

    return _ENV_REF_RE.sub(_replace, text)


def _expand_values(data: Any, environ: Mapping[str, str]) -> Any:
    if isinstance(data, str):
        return expand_env(data, environ)
    if isinstance(data, dict):
        return {key: _expand_values(value, environ) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_values(item, environ) for item in data]
    return data


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BadgeSection(_Section):
    path: str = ""


class CoverageSection(_Section):
    path: str = ""
    badge: BadgeSection = Field(default_factory=BadgeSection)
    acceptable: str = ""


class CodeToTestRatioSection(_Section):
    code: List[str] = Field(default_factory=list)
    test: List[str] = Field(default_factory=list)
    badge: BadgeSection = Field(default_factory=BadgeSection)
    acceptable: str = ""


class ExecutionTimeSection(_Section):
    badge: BadgeSection = Field(default_factory=BadgeSection)
    acceptable: str = ""
    steps: List[str] = Field(default_factory=list)


class PushSection(_Section):
    enable: Optional[bool] = None
    if_: str = Field("", alias="if")


class CommentSection(_Section):
    enable: Optional[bool] = None
    hide_footer_link: bool = Field(False, alias="hideFooterLink")
    if_: str = Field("", alias="if")


class DiffSection(_Section):
    path: str = ""
    datastores: List[str] = Field(default_factory=list)
    if_: str = Field("", alias="if")


class DatastoresSection(_Section):
    datastores: List[str] = Field(default_factory=list)


class CentralSection(_Section):
    enable: Optional[bool] = None
    root: str = ""
    reports: DatastoresSection = Field(default_factory=DatastoresSection)
    badges: DatastoresSection = Field(default_factory=DatastoresSection)
    push: Optional[PushSection] = None
    if_: str = Field("", alias="if")


class Config(_Section):
    repository: str = ""
    coverage: Optional[CoverageSection] = None
    code_to_test_ratio: Optional[CodeToTestRatioSection] = Field(None, alias="codeToTestRatio")
    test_execution_time: Optional[ExecutionTimeSection] = Field(None, alias="testExecutionTime")
    central: Optional[CentralSection] = None
    push: Optional[PushSection] = None
    comment: Optional[CommentSection] = None
    diff: Optional[DiffSection] = None

    _wd: str = PrivateAttr(default="")
    _path: str = PrivateAttr(default="")
    _assembler: Optional[ContextAssembler] = PrivateAttr(default=None)

    @classmethod
    def load(cls,
             path: str = "",
             wd: Optional[str] = None,
             environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load ``path`` (relative to ``wd``), or the single default config file
        found in ``wd``. Without any file an empty config is returned.
        ``$VAR`` references in string values are expanded after parsing.
        """
        wd = wd or os.getcwd()
        env = environ if environ is not None else os.environ
        if not path:
            found = [p for p in DEFAULT_CONFIG_FILE_PATHS if os.path.isfile(os.path.join(wd, p))]
            if len(found) > 1:
                raise ConfigurationError(f"duplicate config file [{', '.join(found)}]")
            path = found[0] if found else ""

        if not path:
            config = cls()
        else:
            full_path = os.path.join(wd, path)
            try:
                with open(full_path, "r", encoding="utf-8") as f:
                    raw = f.read()
            except OSError as exc:
                raise ConfigurationError(f"failed to read config {full_path}: {exc}") from exc
            try:
                data = yaml.load(raw, Loader=_ConfigLoader) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"failed to parse config {full_path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigurationError(f"config {full_path} must be a mapping")
            try:
                config = cls.model_validate(_expand_values(data, env))
            except ValidationError as exc:
                raise ConfigurationError(f"invalid config {full_path}: {exc}") from exc
            config._path = os.path.normpath(full_path)

        config._wd = wd
        if not config.repository:
            config.repository = str(env.get("GITHUB_REPOSITORY", "")).strip()
        return config

    def root(self) -> str:
        if self._path:
            return os.path.dirname(self._path)
        return self._wd or os.getcwd()

    def loaded(self) -> bool:
        return bool(self._path)

    # --- Acceptability ---

    def coverage_ready(self) -> bool:
        return self.coverage is not None

    def code_to_test_ratio_ready(self) -> bool:
        return self.code_to_test_ratio is not None and bool(self.code_to_test_ratio.code)

    def test_execution_time_ready(self) -> bool:
        return self.test_execution_time is not None

    def acceptable(self, report: MetricsReport) -> None:
        """Raise the first unmet threshold among the configured metrics."""
        if self.coverage_ready() and report.coverage is not None:
            coverage_acceptable(report.coverage_percent(), self.coverage.acceptable)
        if self.code_to_test_ratio_ready() and report.code_to_test_ratio is not None:
            code_to_test_ratio_acceptable(report.code_to_test_ratio_ratio(), self.code_to_test_ratio.acceptable)
        if self.test_execution_time_ready() and report.test_execution_time is not None:
            execution_time_acceptable(report.test_execution_time_nano(), self.test_execution_time.acceptable)

    # --- Gated actions ---

    @property
    def assembler(self) -> ContextAssembler:
        """Context assembler shared by every gate of this config."""
        if self._assembler is None:
            self._assembler = ContextAssembler(self.repository)
        return self._assembler

    def with_assembler(self, assembler: ContextAssembler) -> "Config":
        self._assembler = assembler
        return self

    def check_if(self, cond: str) -> bool:
        return check_if(cond, self.assembler)

    def _gate_ready(self, action: str, cond: str) -> bool:
        try:
            ok = self.check_if(cond)
        except ExpressionError as exc:
            logger.warning("Skip %s: %s", action, exc)
            return False
        if not ok:
            logger.info("Skip %s: the condition in the `if` section is not met (%s)", action, cond)
            return False
        return True

    def push_ready(self) -> bool:
        if self.push is None or self.push.enable is False:
            return False
        return self._gate_ready("pushing reports", self.push.if_)

    def comment_ready(self) -> bool:
        if self.comment is None or self.comment.enable is False:
            return False
        return self._gate_ready("commenting", self.comment.if_)

    def diff_ready(self) -> bool:
        if self.diff is None or (not self.diff.path and not self.diff.datastores):
            return False
        return self._gate_ready("comparing reports", self.diff.if_)

    def central_ready(self) -> bool:
        if self.central is None or self.central.enable is False:
            return False
        return self._gate_ready("central mode", self.central.if_)

    def central_push_ready(self) -> bool:
        if not self.central_ready():
            return False
        push = self.central.push
        if push is None or push.enable is False:
            return False
        return self._gate_ready("pushing badges", push.if_)

    def build_central_config(self) -> None:
        if not self.repository:
            raise ConfigurationError("repository: not set (or env GITHUB_REPOSITORY is not set)")
        if self.central is None:
            raise ConfigurationError("central: not set")
        if not self.central.root:
            self.central.root = "."
        if not os.path.isabs(self.central.root):
            self.central.root = os.path.normpath(os.path.join(self.root(), self.central.root))
        if not self.central.reports.datastores:
            self.central.reports.datastores = [DEFAULT_REPORTS_DATASTORE]
        if not self.central.badges.datastores:
            self.central.badges.datastores = [DEFAULT_BADGES_DATASTORE]
