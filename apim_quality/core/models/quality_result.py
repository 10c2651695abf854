"""
QualityResult model representing the outcome of one criterion for one Application (ephemeral).
"""

from pydantic import BaseModel, Field


class QualityResult(BaseModel):
    """
    Outcome of evaluating a single criterion against a single Application.

    Attributes:
        reference: Reference of the evaluated criterion ("APP-DF01")
        description: Human readable description of the criterion
        complied: Whether the Application complies with the criterion
    """

    reference: str = Field(..., min_length=1)
    description: str
    complied: bool

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "reference": "APP-DF01",
                "description": "Name's naming convention complied",
                "complied": True,
            }
        }
