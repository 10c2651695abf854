"""
AuditSettings model holding the configuration of one quality extraction run.
"""

from pydantic import BaseModel, Field, model_validator

DEFAULT_DELAY_PERIOD = 200
DEFAULT_LIST_TIMEOUT = 30000
DEFAULT_DESCRIPTION_MIN_LENGTH = 30


class AuditSettings(BaseModel):
    """
    Configuration of an Application quality extraction.

    Durations are expressed in milliseconds.

    Attributes:
        filter_by_id: Audit only the Application with this id
        filter_by_name: Case-insensitive regex on Application names
        delay_period: Delay between two discovered Applications
        list_timeout: Overall bound of the Application listing
        evaluate_runtime: Whether runtime criteria are evaluated
        runtime_from: Start of the runtime window (Elasticsearch date math)
        runtime_to: End of the runtime window (Elasticsearch date math)
        elasticsearch_url: Elasticsearch base URL
        elasticsearch_headers: Additional HTTP headers sent to Elasticsearch
        elasticsearch_index: Index (pattern) of gateway request events
        description_min_length: Minimum description length for APP-DF02
        criteria_config: Optional YAML file overriding the criteria catalog
    """

    filter_by_id: str | None = None
    filter_by_name: str | None = None
    delay_period: int = Field(DEFAULT_DELAY_PERIOD, ge=0)
    list_timeout: int = Field(DEFAULT_LIST_TIMEOUT, gt=0)
    evaluate_runtime: bool = False
    runtime_from: str = "now-1M"
    runtime_to: str = "now"
    elasticsearch_url: str | None = None
    elasticsearch_headers: dict[str, str] = Field(default_factory=dict)
    elasticsearch_index: str | None = None
    description_min_length: int = Field(DEFAULT_DESCRIPTION_MIN_LENGTH, ge=0)
    criteria_config: str | None = None

    @model_validator(mode="after")
    def check_runtime_settings(self):
        """Runtime evaluation cannot run without a search index to query."""
        if self.evaluate_runtime and not (self.elasticsearch_url and self.elasticsearch_index):
            raise ValueError(
                "evaluate_runtime requires both elasticsearch_url and elasticsearch_index"
            )
        return self

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "filter_by_name": "^billing",
                "delay_period": 200,
                "list_timeout": 30000,
                "evaluate_runtime": True,
                "runtime_from": "now-1M",
                "runtime_to": "now",
                "elasticsearch_url": "http://localhost:9200",
                "elasticsearch_index": "gravitee-request-*",
                "description_min_length": 30,
            }
        }
