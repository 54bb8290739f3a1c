from __future__ import annotations


class CovgateError(Exception):
    """Base class for every error raised by covgate."""


class ConfigurationError(CovgateError):
    """Missing or invalid configuration (repository identifier, config files)."""


class PlatformError(CovgateError):
    """A platform lookup failed or the upstream event payload could not be decoded."""


class ExpressionError(CovgateError):
    """A gate expression could not be parsed or evaluated."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{reason} (expression: {expression})")


class ThresholdParseError(CovgateError):
    """A threshold string does not follow its metric's grammar."""

    def __init__(self, threshold: str, reason: str):
        self.threshold = threshold
        self.reason = reason
        super().__init__(f"invalid threshold {threshold!r}: {reason}")


class UnacceptableMetricError(CovgateError):
    """A metric value does not satisfy its configured threshold."""
