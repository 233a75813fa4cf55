"""
ERP Lens Backend - Pydantic Models
All request/response schemas
"""

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class NumericSummary(BaseModel):
    sum: float
    avg: float
    min: float
    max: float


class DateRange(BaseModel):
    column: str = ""
    start: str = ""
    end: str = ""


class DatasetStatistics(BaseModel):
    row_count: int
    date_range: DateRange
    numeric_stats: dict[str, NumericSummary]


class ColumnSummary(BaseModel):
    name: str
    column_type: str
    unique_count: int
    sample_values: list[Any]


class ChartConfig(BaseModel):
    """A chart proposed by the insight model; accepts the camelCase keys it tends to emit."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    type: Literal["bar", "line", "area", "pie", "scatter", "radar"] = "bar"
    x_axis_key: str = Field(alias="xAxisKey")
    data_key: str = Field(alias="dataKey")
    description: str = ""


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    key_insights: list[str] = Field(default_factory=list, alias="keyInsights")
    charts: list[ChartConfig] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: Literal["user", "ai"]
    content: str


class ChartSeries(BaseModel):
    data: list[dict[str, Any]]
    x_axis_key: str
    data_key: str
    aggregation: str
    is_chronological: bool
    y_axis_label: Optional[str] = None
    title: Optional[str] = None
    chart_type: Optional[str] = None
    chart_id: Optional[str] = None
    row_count: int


class UploadResponse(BaseModel):
    dataset_id: str
    filenames: list[str]
    row_count: int
    columns: list[ColumnSummary]
    cleaning_actions: list[str]
    statistics: DatasetStatistics


class CleanRequest(BaseModel):
    dataset_id: str
    current_year: Optional[int] = None


class CleanResponse(BaseModel):
    dataset_id: str
    row_count: int
    cleaning_actions: list[str]
    statistics: DatasetStatistics


class SampleResponse(BaseModel):
    dataset_id: str
    total_rows: int
    limit: int
    data: list[dict[str, Any]]


class DrillDownFilter(BaseModel):
    column: str
    value: Any


class AggregateRequest(BaseModel):
    dataset_id: str
    x_axis_key: str
    data_key: str
    drill_down: Optional[DrillDownFilter] = None


class AnalyzeRequest(BaseModel):
    dataset_id: str
    user_prompt: Optional[str] = None
    history: list[ChatMessage] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    analysis: AnalysisResult
    charts: list[ChartSeries]
    context_rows: int
    warnings: Optional[list[str]] = None


class DrillDownRequest(BaseModel):
    dataset_id: str
    column: str
    value: Any
    charts: list[ChartConfig] = Field(default_factory=list)


class DrillDownResponse(BaseModel):
    column: str
    value: Any
    total_rows: int
    statistics: DatasetStatistics
    charts: list[ChartSeries]
