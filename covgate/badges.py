from typing import List

from pydantic import BaseModel

from covgate.metrics.duration import format_duration
from covgate.metrics.tiers import (
    SeverityTier,
    code_to_test_ratio_tier,
    coverage_tier,
    execution_time_tier,
)
from covgate.report import MetricsReport


class Badge(BaseModel):
    """Label, message and color of a status badge."""
    label: str
    message: str
    tier: SeverityTier

    @property
    def color(self) -> str:
        return self.tier.hex


def coverage_badge(percent: float) -> Badge:
    return Badge(label="coverage", message=f"{percent:.1f}%", tier=coverage_tier(percent))


def code_to_test_ratio_badge(ratio: float) -> Badge:
    return Badge(label="code to test ratio", message=f"1:{ratio:.1f}", tier=code_to_test_ratio_tier(ratio))


def execution_time_badge(nanoseconds: float) -> Badge:
    return Badge(
        label="test execution time",
        message=format_duration(nanoseconds),
        tier=execution_time_tier(nanoseconds),
    )


def build_badges(report: MetricsReport) -> List[Badge]:
    badges: List[Badge] = []
    if report.coverage is not None:
        badges.append(coverage_badge(report.coverage_percent()))
    if report.code_to_test_ratio is not None:
        badges.append(code_to_test_ratio_badge(report.code_to_test_ratio_ratio()))
    if report.test_execution_time is not None:
        badges.append(execution_time_badge(report.test_execution_time_nano()))
    return badges
