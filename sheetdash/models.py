"""Pydantic models for API requests/responses"""
from typing import List, Dict, Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from uuid import UUID


CHART_TYPE_PATTERN = "^(line|bar|area|pie)$"
WIDGET_TYPE_PATTERN = "^(chart|metric|table|text)$"
PROVIDER_PATTERN = "^(openai|anthropic|google|mistral)$"
OPERATION_PATTERN = "^(sum|average|avg|mean|count|min|max|calculate|total)$"
A1_RANGE_PATTERN = "^[A-Za-z]{1,3}[1-9][0-9]{0,6}(:[A-Za-z]{1,3}[1-9][0-9]{0,6})?$"
FILE_TYPE_PATTERN = "^(pdf|docx)$"


# Users
class UserUpsert(BaseModel):
    """User creation/update request"""
    clerk_id: str = Field(..., min_length=1)
    name: str
    email: str = ""
    image_url: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserResponse(BaseModel):
    """User response"""
    id: UUID
    clerk_id: str
    name: str
    email: str
    image_url: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Projects
class ProjectCreate(BaseModel):
    """Project creation request"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    """Project update request"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectResponse(BaseModel):
    """Project response"""
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Spreadsheets
class SpreadsheetCreate(BaseModel):
    """Spreadsheet creation request"""
    project_id: UUID
    name: str = Field(..., min_length=1, max_length=255)


class SpreadsheetDataUpdate(BaseModel):
    """Replace the stored document"""
    data: str


class SpreadsheetRename(BaseModel):
    """Spreadsheet rename request"""
    name: str = Field(..., min_length=1, max_length=255)


class SpreadsheetResponse(BaseModel):
    """Spreadsheet response including the document"""
    id: UUID
    project_id: UUID
    owner_id: UUID
    name: str
    data: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CsvExportResponse(BaseModel):
    """CSV export of the first sheet"""
    csv: str


class CsvImportRequest(BaseModel):
    """CSV text that replaces the document"""
    csv: str


class MarkerRequest(BaseModel):
    """Marker insertion request"""
    text: str = "test"


class MarkerResponse(BaseModel):
    """Where the marker was written"""
    sheet_name: str
    row: int


class CreateTableRequest(BaseModel):
    """Synthesized table request"""
    headers: List[str] = Field(..., min_length=1)
    num_rows: int = 5
    sheet_name: Optional[str] = None


class TableResultResponse(BaseModel):
    """Synthesized table result"""
    sheet_name: str
    created_sheet: bool
    start_row: int
    num_rows: int
    headers: List[str]
    range: str
    message: str

    class Config:
        from_attributes = True


class ColumnStatsRequest(BaseModel):
    """Column statistics request"""
    column_name: str = Field(..., min_length=1)
    operation: str = Field("sum", pattern=OPERATION_PATTERN)


class ColumnStatsResponse(BaseModel):
    """Column statistics result"""
    column_name: str
    sheet_name: str
    operation: str
    result: float
    count: int
    sum: float
    average: float
    min: float
    max: float
    result_row: int

    class Config:
        from_attributes = True


# Charts
class ChartCreate(BaseModel):
    """Chart creation request"""
    spreadsheet_id: UUID
    type: str = Field(..., pattern=CHART_TYPE_PATTERN)
    range: str = Field(..., pattern=A1_RANGE_PATTERN)
    sheet_name: Optional[str] = None
    title: Optional[str] = None


class ChartUpdate(BaseModel):
    """Chart update request"""
    type: Optional[str] = Field(None, pattern=CHART_TYPE_PATTERN)
    range: Optional[str] = Field(None, pattern=A1_RANGE_PATTERN)
    sheet_name: Optional[str] = None
    title: Optional[str] = None


class ChartResponse(BaseModel):
    """Chart response"""
    id: UUID
    spreadsheet_id: UUID
    owner_id: UUID
    type: str
    range: str
    sheet_name: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChartDataResponse(BaseModel):
    """Values of the chart's range"""
    chart_id: UUID
    sheet_name: Optional[str] = None
    range: str
    data: List[List[Any]]


# Dashboards
class WidgetPosition(BaseModel):
    """Grid placement of a widget"""
    x: int = 0
    y: int = 0
    width: int = Field(4, ge=1)
    height: int = Field(3, ge=1)


class WidgetCreate(BaseModel):
    """Widget data for creation"""
    type: str = Field(..., pattern=WIDGET_TYPE_PATTERN)
    title: str = Field(..., min_length=1, max_length=255)
    chart_type: Optional[str] = Field(None, pattern=CHART_TYPE_PATTERN)
    range: Optional[str] = None
    sheet_name: Optional[str] = None
    metric_value: Optional[str] = None
    metric_formula: Optional[str] = None
    metric_column: Optional[str] = None
    table_range: Optional[str] = None
    table_sheet_name: Optional[str] = None
    position: WidgetPosition = Field(default_factory=WidgetPosition)


class WidgetResponse(BaseModel):
    """Widget response"""
    id: UUID
    dashboard_id: UUID
    type: str
    title: str
    chart_type: Optional[str] = None
    range: Optional[str] = None
    sheet_name: Optional[str] = None
    metric_value: Optional[str] = None
    metric_formula: Optional[str] = None
    metric_column: Optional[str] = None
    table_range: Optional[str] = None
    table_sheet_name: Optional[str] = None
    position: WidgetPosition
    created_at: datetime

    @classmethod
    def from_widget(cls, widget) -> "WidgetResponse":
        return cls(
            id=widget.id,
            dashboard_id=widget.dashboard_id,
            type=widget.type,
            title=widget.title,
            chart_type=widget.chart_type,
            range=widget.range,
            sheet_name=widget.sheet_name,
            metric_value=widget.metric_value,
            metric_formula=widget.metric_formula,
            metric_column=widget.metric_column,
            table_range=widget.table_range,
            table_sheet_name=widget.table_sheet_name,
            position=WidgetPosition(
                x=widget.position_x,
                y=widget.position_y,
                width=widget.position_width,
                height=widget.position_height
            ),
            created_at=widget.created_at
        )


class DashboardCreate(BaseModel):
    """Dashboard creation request"""
    spreadsheet_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    widgets_data: str = "[]"
    layout: Optional[str] = None


class DashboardUpdate(BaseModel):
    """Dashboard update request"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    widgets_data: Optional[str] = None
    layout: Optional[str] = None


class DashboardResponse(BaseModel):
    """Dashboard response"""
    id: UUID
    spreadsheet_id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    widgets_data: str
    layout: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    widgets: List[WidgetResponse]

    @classmethod
    def from_dashboard(cls, dashboard) -> "DashboardResponse":
        return cls(
            id=dashboard.id,
            spreadsheet_id=dashboard.spreadsheet_id,
            owner_id=dashboard.owner_id,
            name=dashboard.name,
            description=dashboard.description,
            widgets_data=dashboard.widgets_data,
            layout=dashboard.layout,
            created_at=dashboard.created_at,
            updated_at=dashboard.updated_at,
            widgets=[WidgetResponse.from_widget(w) for w in dashboard.widgets]
        )


class DashboardListItem(BaseModel):
    """Dashboard list item (without widgets)"""
    id: UUID
    spreadsheet_id: UUID
    name: str
    description: Optional[str] = None
    chart_count: int
    metric_count: int
    created_at: datetime
    updated_at: datetime


# AI agents
class AgentCreate(BaseModel):
    """AI agent creation request"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    provider: str = Field(..., pattern=PROVIDER_PATTERN)
    model_name: str = Field(..., min_length=1)
    system_prompt: Optional[str] = None


class AgentUpdate(BaseModel):
    """AI agent update request"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    provider: Optional[str] = Field(None, pattern=PROVIDER_PATTERN)
    model_name: Optional[str] = None
    system_prompt: Optional[str] = None
    is_active: Optional[bool] = None


class AgentResponse(BaseModel):
    """AI agent response"""
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    provider: str
    model_name: str
    system_prompt: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# AI conversations
class ConversationCreate(BaseModel):
    """Conversation creation request"""
    spreadsheet_id: UUID
    title: str = Field(..., min_length=1, max_length=255)


class ConversationResponse(BaseModel):
    """Conversation response"""
    id: UUID
    spreadsheet_id: UUID
    owner_id: UUID
    title: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChartSuggestion(BaseModel):
    """Chart proposed by the assistant"""
    type: str
    range: str
    sheet_name: Optional[str] = None
    title: Optional[str] = None


class MessageSend(BaseModel):
    """User message for the assistant"""
    content: str = Field(..., min_length=1)
    selected_range: Optional[str] = None
    active_sheet_name: Optional[str] = None
    agent_id: Optional[UUID] = None


class MessageResponse(BaseModel):
    """Stored conversation message"""
    id: UUID
    conversation_id: UUID
    role: str
    content: str
    chart_data: Optional[ChartSuggestion] = None
    agent_id: Optional[UUID] = None
    model_name: Optional[str] = None
    provider: Optional[str] = None
    created_at: datetime


# Documents
class DocumentCreate(BaseModel):
    """Uploaded document record; text is extracted by the client"""
    spreadsheet_id: UUID
    conversation_id: Optional[UUID] = None
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., pattern=FILE_TYPE_PATTERN)
    extracted_text: Optional[str] = None
    extracted_tables: Optional[str] = None
    page_count: Optional[int] = Field(None, ge=0)


class DocumentResponse(BaseModel):
    """Document response"""
    id: UUID
    spreadsheet_id: UUID
    conversation_id: Optional[UUID] = None
    owner_id: UUID
    file_name: str
    file_type: str
    extracted_text: Optional[str] = None
    extracted_tables: Optional[str] = None
    page_count: Optional[int] = None
    processing_status: str
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Integrations
class AirtableConnect(BaseModel):
    """Airtable personal access token"""
    access_token: str = Field(..., min_length=1)


class AirtableImportRequest(BaseModel):
    """Airtable table import request"""
    base_id: str = Field(..., min_length=1)
    table_id: str = Field(..., min_length=1)
    table_name: str = Field(..., min_length=1)
    spreadsheet_name: Optional[str] = None


class IntegrationResponse(BaseModel):
    """Integration without its token"""
    id: UUID
    provider: str
    status: str
    last_synced_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AirtableImportResponse(BaseModel):
    """Airtable import with its spreadsheet"""
    id: UUID
    spreadsheet_id: UUID
    spreadsheet_name: str
    project_id: UUID
    base_id: str
    table_id: str
    table_name: str
    record_count: int
    last_synced_at: Optional[datetime] = None
    created_at: datetime


class OperationResult(BaseModel):
    """Outcome of an Airtable operation"""
    success: bool
    message: str
    data: Optional[Any] = None


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    version: str
    timestamp: str
    dependencies: Dict[str, str]
