from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class CoverageSummary(BaseModel):
    covered: int = Field(0, ge=0, description="Covered statements/lines")
    total: int = Field(0, ge=0, description="Total statements/lines")


class CodeToTestRatioSummary(BaseModel):
    code: int = Field(0, ge=0, description="Lines of production code")
    test: int = Field(0, ge=0, description="Lines of test code")


class MetricsReport(BaseModel):
    """Code-quality metrics collected for one CI run."""
    repository: str = ""
    ref: str = ""
    commit: str = ""
    coverage: Optional[CoverageSummary] = None
    code_to_test_ratio: Optional[CodeToTestRatioSummary] = None
    test_execution_time: Optional[float] = Field(None, ge=0, description="Elapsed nanoseconds")

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def load(cls, path: str) -> "MetricsReport":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())

    def coverage_percent(self) -> float:
        if self.coverage is None or self.coverage.total == 0:
            return 0.0
        return float(self.coverage.covered) / float(self.coverage.total) * 100

    def code_to_test_ratio_ratio(self) -> float:
        if self.code_to_test_ratio is None or self.code_to_test_ratio.code == 0:
            return 0.0
        return float(self.code_to_test_ratio.test) / float(self.code_to_test_ratio.code)

    def test_execution_time_nano(self) -> float:
        return float(self.test_execution_time or 0.0)
