"""
Pydantic models for the Metabase dataset API

Covers the native query sent to `POST /api/dataset`, the response Metabase
sends back, and the two result shapes the tool returns to its caller.
"""

import math
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


# ---------------------------------------------------------------------------
# Tool arguments
# ---------------------------------------------------------------------------

class ToolArguments(BaseModel):
    """Decoded arguments of the metabase-tool call"""
    query: StrictStr = Field(..., min_length=1, description="The query to execute against the db")


def decode_tool_arguments(arguments: Any) -> ToolArguments:
    """
    Validate the loosely typed argument mapping of a tool call.

    Raises:
        ValidationError: If arguments is not a mapping or `query` is missing,
            not a string, or empty
    """
    if not isinstance(arguments, Mapping):
        raise ValidationError("invalid arguments format")
    try:
        return ToolArguments.model_validate(dict(arguments))
    except PydanticValidationError:
        raise ValidationError("query is required and must be a non-empty string") from None


# ---------------------------------------------------------------------------
# Outbound query
# ---------------------------------------------------------------------------

class NativeQuery(BaseModel):
    """Native part of a Metabase query"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str
    template_tags: Dict[str, Any] = Field(default_factory=dict, alias="template-tags")


class MetabaseQuery(BaseModel):
    """Query posted to /api/dataset"""
    model_config = ConfigDict(frozen=True)

    type: Literal["native"] = "native"
    database: int
    native: NativeQuery
    parameters: List[Any] = Field(default_factory=list)

    @classmethod
    def native_sql(cls, database_id: int, statement: str) -> "MetabaseQuery":
        """Build a native query with no template tags and no parameters."""
        return cls(database=database_id, native=NativeQuery(query=statement))

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Inbound response
# ---------------------------------------------------------------------------

class MetabaseModel(BaseModel):
    """Base for response models: unknown keys are ignored, null means default."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def _null_entries_as_defaults(value: Any) -> Any:
    # A null list entry decodes to an all-default model
    if isinstance(value, list):
        return [{} if item is None else item for item in value]
    return value


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(item) for item in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(item) for item in value)
    return False


class Column(MetabaseModel):
    """Column definition in data.cols"""
    display_name: StrictStr = ""
    source: StrictStr = ""
    field_ref: List[Any] = Field(default_factory=list)
    name: StrictStr = ""
    base_type: StrictStr = ""
    effective_type: StrictStr = ""


class NativeForm(MetabaseModel):
    query: StrictStr = ""
    params: Any = None


class GlobalFingerprint(MetabaseModel):
    distinct_count: StrictInt = Field(0, alias="distinct-count")
    nil_percent: float = Field(0.0, alias="nil%")


class TypeFingerprint(MetabaseModel):
    percent_json: float = Field(0.0, alias="percent-json")
    percent_url: float = Field(0.0, alias="percent-url")
    percent_email: float = Field(0.0, alias="percent-email")
    percent_state: float = Field(0.0, alias="percent-state")
    average_length: float = Field(0.0, alias="average-length")


class Fingerprint(MetabaseModel):
    global_: GlobalFingerprint = Field(default_factory=GlobalFingerprint, alias="global")
    type: Dict[str, TypeFingerprint] = Field(default_factory=dict)


class MetadataColumn(MetabaseModel):
    """Column entry of data.results_metadata"""
    display_name: StrictStr = ""
    field_ref: List[Any] = Field(default_factory=list)
    name: StrictStr = ""
    base_type: StrictStr = ""
    effective_type: StrictStr = ""
    semantic_type: Optional[StrictStr] = None
    fingerprint: Optional[Fingerprint] = None


class ResultsMetadata(MetabaseModel):
    columns: List[MetadataColumn] = Field(default_factory=list)

    @field_validator("columns", mode="before")
    @classmethod
    def null_columns_as_defaults(cls, value: Any) -> Any:
        return _null_entries_as_defaults(value)


class MetabaseData(MetabaseModel):
    """The data section of a dataset response"""
    rows: List[Optional[List[Any]]] = Field(default_factory=list)
    cols: List[Column] = Field(default_factory=list)
    native_form: NativeForm = Field(default_factory=NativeForm)
    results_timezone: StrictStr = ""
    results_metadata: ResultsMetadata = Field(default_factory=ResultsMetadata)
    insights: Any = None

    @field_validator("cols", mode="before")
    @classmethod
    def null_cols_as_defaults(cls, value: Any) -> Any:
        return _null_entries_as_defaults(value)


class JSONQuery(MetabaseModel):
    """The query as Metabase echoes it back after middleware processing"""
    type: StrictStr = ""
    database: StrictInt = 0
    native: Dict[str, Any] = Field(default_factory=dict)
    middleware: Dict[str, Any] = Field(default_factory=dict)


class MetabaseResponse(MetabaseModel):
    """Complete response from POST /api/dataset"""
    data: MetabaseData = Field(default_factory=MetabaseData)
    cached: StrictBool = False
    database_id: StrictInt = 0
    started_at: StrictStr = ""
    json_query: JSONQuery = Field(default_factory=JSONQuery)
    average_execution_time: Optional[float] = None
    status: StrictStr = ""
    context: StrictStr = ""
    row_count: StrictInt = 0
    running_time: StrictInt = 0
    # Set by Metabase when the query itself failed (status "failed")
    error: Any = None

    @model_validator(mode="before")
    @classmethod
    def reject_non_finite(cls, data: Any) -> Any:
        # JSON has no Infinity or NaN; 1e400 and the bare literals are not numbers
        if _has_non_finite(data):
            raise ValueError("response contains a non-finite number")
        return data


# ---------------------------------------------------------------------------
# Tool results
# ---------------------------------------------------------------------------

class QueryResult(BaseModel):
    """Formatted result when the response parsed as a dataset response"""
    kind: Literal["result"] = "result"
    status: str
    row_count: int
    running_time: int
    database_id: int
    cached: bool
    rows: List[Optional[List[Any]]]
    columns: List[Column]
    query_sent: MetabaseQuery
    error: Any = None

    @classmethod
    def from_response(cls, response: MetabaseResponse, query: MetabaseQuery) -> "QueryResult":
        return cls(
            status=response.status,
            row_count=response.row_count,
            running_time=response.running_time,
            database_id=response.database_id,
            cached=response.cached,
            rows=response.data.rows,
            columns=response.data.cols,
            query_sent=query,
            error=response.error
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude={"kind", "error"})
        if self.error is not None:
            payload["error"] = self.error
        return payload


class RawFallbackResult(BaseModel):
    """Raw HTTP response, used when the body is not a dataset response"""
    kind: Literal["fallback"] = "fallback"
    status_code: int
    status: str
    body: str
    query_sent: MetabaseQuery

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "status": self.status,
            "body": self.body,
            "query_sent": self.query_sent.to_wire()
        }


BridgeResult = Annotated[Union[QueryResult, RawFallbackResult], Field(discriminator="kind")]
