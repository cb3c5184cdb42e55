from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Bounds used when a request omits its range; selects nothing.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

class Schema(BaseModel):
    """Base for the data-source wire models (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class RangeRaw(Schema):
    """Unparsed range as typed by the user, e.g. "now-6h"."""
    from_: str = Field(default="", alias="from")
    to: str = ""

class Range(Schema):
    """Time range the request is valid for (RFC 3339 bounds)."""
    from_: AwareDatetime = Field(default=ZERO_TIME, alias="from")
    to: AwareDatetime = ZERO_TIME
    raw: RangeRaw = Field(default_factory=RangeRaw)

class Annotation(Schema):
    """Annotation definition sent by the front-end; echoed back on every event."""
    name: str = ""
    # older front-ends send the data source name, newer ones a {type, uid} reference
    datasource: str | dict[str, Any] | None = ""
    icon_color: str = ""
    enable: bool = False
    show_line: bool = False
    query: str = ""

class AnnotationsRequest(Schema):
    range: Range = Field(default_factory=Range)
    annotation: Annotation = Field(default_factory=Annotation)

class AnnotationEvent(Schema):
    """Everything needed to render one annotation marker."""
    annotation: Annotation
    time: int  # epoch millis
    title: str
    tags: str = ""
    text: str = ""

class SearchRequest(Schema):
    target: str = ""

class QueryTarget(Schema):
    target: str = ""
    ref_id: str = ""
    type: str = ""

class QueryRequest(Schema):
    panel_id: Optional[int] = None
    request_id: str = ""
    range: Range = Field(default_factory=Range)
    range_raw: RangeRaw = Field(default_factory=RangeRaw)
    interval: str = ""
    interval_ms: int = 0
    targets: list[QueryTarget] = []
    format: str = ""
    max_data_points: int = 0

class TimeSeries(Schema):
    target: str
    datapoints: list[list[float | int]]

def to_millis(dt: datetime) -> int:
    """Epoch milliseconds of an aware datetime, exact (no float rounding)."""
    return (dt - EPOCH) // timedelta(milliseconds=1)
