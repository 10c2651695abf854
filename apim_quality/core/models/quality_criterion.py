"""
QualityCriterion model representing a catalog entry of the criteria registry,
and EnabledCriteriaSet, the sorted subset actually evaluated during a run.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class QualityCriterion(BaseModel):
    """
    A named, referenceable rule yielding a compliance flag for an Application.

    Attributes:
        reference: Short code unique across the catalog ("APP-DF01"), used as
                   sort key and as report column id
        description: Human readable description
        at_runtime: Whether evaluation requires querying historical events
        enabled: Whether the criterion is active
        evaluator: Object exposing `async evaluate(application, context) -> bool`
    """

    reference: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
    description: str
    at_runtime: bool = False
    enabled: bool = True
    evaluator: Any

    @field_validator("evaluator")
    @classmethod
    def check_evaluator(cls, v):
        if not callable(getattr(v, "evaluate", None)):
            raise ValueError(f"evaluator must expose an evaluate() method, got {type(v).__name__}")
        return v

    async def evaluate(self, application, context) -> bool:
        return await self.evaluator.evaluate(application, context)

    class Config:
        frozen = True
        arbitrary_types_allowed = True


class EnabledCriteriaSet(BaseModel):
    """
    Criteria evaluated during a run, ascending by reference.

    The same instance drives both the report header and every per-Application
    result list, which is what keeps columns aligned.

    Attributes:
        criteria: Enabled criteria, sorted by reference
        runtime_enabled: Whether runtime criteria were allowed in
    """

    criteria: tuple[QualityCriterion, ...] = ()
    runtime_enabled: bool = False

    @field_validator("criteria")
    @classmethod
    def check_sorted(cls, v):
        references = [criterion.reference for criterion in v]
        if references != sorted(references):
            raise ValueError(f"criteria must be sorted by reference, got {references}")
        return v

    @property
    def references(self) -> list[str]:
        return [criterion.reference for criterion in self.criteria]

    def __len__(self) -> int:
        return len(self.criteria)

    class Config:
        frozen = True
