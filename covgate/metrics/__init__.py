from covgate.metrics.duration import format_duration, parse_duration
from covgate.metrics.thresholds import (
    code_to_test_ratio_acceptable,
    coverage_acceptable,
    execution_time_acceptable,
)
from covgate.metrics.tiers import (
    SeverityTier,
    code_to_test_ratio_tier,
    coverage_tier,
    execution_time_tier,
)

__all__ = [
    "SeverityTier",
    "code_to_test_ratio_acceptable",
    "code_to_test_ratio_tier",
    "coverage_acceptable",
    "coverage_tier",
    "execution_time_acceptable",
    "execution_time_tier",
    "format_duration",
    "parse_duration",
]
