"""Bag validator schemas."""

from pydantic import BaseModel, ConfigDict, Field


class RuleViolation(BaseModel):
    """A single rule the validated bag does not comply with."""

    rule: str
    violation: str


class ValidateCommand(BaseModel):
    """Request body for the bag validator."""

    model_config = ConfigDict(populate_by_name=True)

    bag_location: str = Field(alias="bagLocation")
    package_type: str = Field(default="DEPOSIT", alias="packageType")
    level: str = "STAND-ALONE"


class ValidateResult(BaseModel):
    """Response of the bag validator.

    Attributes:
        is_compliant: Whether the bag satisfies every rule
        rule_violations: Rules the bag violates, empty when compliant
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    is_compliant: bool = Field(alias="isCompliant")
    rule_violations: list[RuleViolation] = Field(default=[], alias="ruleViolations")
