"""
ApplicationReport model holding every QualityResult of one Application (ephemeral).
"""

from pydantic import BaseModel, field_validator

from .application import Application
from .quality_result import QualityResult


class ApplicationReport(BaseModel):
    """
    All quality results of one Application, ordered by criterion reference.

    Created once every enabled criterion has been evaluated for the
    Application, then consumed once by the report sink.

    Attributes:
        application: The audited Application
        results: Quality results, ascending by reference
    """

    application: Application
    results: tuple[QualityResult, ...]

    @field_validator("results")
    @classmethod
    def check_reference_order(cls, v):
        references = [result.reference for result in v]
        if references != sorted(references):
            raise ValueError(f"results must be sorted by reference, got {references}")
        return v

    @property
    def references(self) -> list[str]:
        return [result.reference for result in self.results]

    def compliance(self) -> list[bool]:
        """Compliance flags in reference order."""
        return [result.complied for result in self.results]

    class Config:
        frozen = True
