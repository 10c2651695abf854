"""
EvaluationContext model grouping the collaborators a criterion evaluator may use.
"""

from typing import Any

from pydantic import BaseModel


class EvaluationContext(BaseModel):
    """
    Collaborators and runtime window handed to every evaluator.

    Attributes:
        management_api: Management service client (logged in)
        search: Search collaborator exposing `search_hits()`, None when runtime
                evaluation is disabled
        search_index: Index (or index pattern) holding gateway request events
        runtime_from: Start of the runtime window, inclusive (Elasticsearch date math)
        runtime_to: End of the runtime window, exclusive (Elasticsearch date math)
    """

    management_api: Any = None
    search: Any = None
    search_index: str | None = None
    runtime_from: str = "now-1M"
    runtime_to: str = "now"

    class Config:
        frozen = True
        arbitrary_types_allowed = True
