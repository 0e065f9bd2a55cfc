"""
Ember Ascent - Validation Types
Question payload accepted by the validation pipeline and the result records it produces.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["critical", "error", "warning"]

AnswerFormat = Literal[
    "integer",
    "decimal",
    "fraction",
    "mixed_number",
    "mixed_number_unsimplified",
    "percentage",
    "ratio",
]


# ============================================================================
# Input payload (snake_case, as produced by the question generator)
# ============================================================================

class Verification(BaseModel):
    model_config = ConfigDict(extra="forbid")

    computed_answer_matches_option: bool = False
    matched_option_value: str = ""
    verification_status: Literal["VERIFIED", "MISMATCH", "ANSWER_NOT_IN_OPTIONS"] = "MISMATCH"


class ComputationalVerification(BaseModel):
    model_config = ConfigDict(extra="forbid")

    expression: str = ""
    expected_result: str = ""
    result_format: Literal["fraction", "decimal", "integer"] = "integer"


class MathQuestion(BaseModel):
    """A generated question with the generator's own working and self-check."""
    model_config = ConfigDict(extra="forbid")

    question_id: str = Field(max_length=100)
    subject: str = ""
    topic: str = ""
    subtopic: str = ""
    difficulty: Literal["Foundation", "Standard", "Challenge"] = "Standard"
    year_group: Literal["Year 3", "Year 4", "Year 5", "Year 6"] | None = None
    question_text: str = ""
    # step_1, step_2, ..., final_calculation, computed_result
    working: dict[str, str] = Field(default_factory=dict)
    answer_format: AnswerFormat = "integer"
    computed_answer: str = ""
    options: dict[str, str] = Field(default_factory=dict)
    correct_option: str = ""
    verification: Verification = Field(default_factory=Verification)
    computational_verification: ComputationalVerification | None = None


# ============================================================================
# Results
# ============================================================================

@dataclass
class CheckResult:
    check_name: str
    passed: bool
    details: str
    severity: Severity


@dataclass
class ValidationIssue:
    """A failed critical or error check, shaped for the review UI."""
    code: str
    message: str
    field: str
    auto_fixable: bool = False
    suggested_fix: str | None = None
    expected: str | None = None
    received: str | None = None


@dataclass
class ValidationWarning:
    code: str
    message: str


@dataclass
class ValidationResult:
    question_id: str
    passed: bool
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    corrected_data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BatchValidationResult:
    total: int
    passed: list[MathQuestion] = field(default_factory=list)
    failed: list[ValidationResult] = field(default_factory=list)
    auto_corrected: int = 0
    results: list[ValidationResult] = field(default_factory=list)
