"""SQLAlchemy database models"""
from datetime import datetime
from sqlalchemy import Boolean, Column, String, Integer, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import declarative_base, relationship
import uuid

Base = declarative_base()


class User(Base):
    """Application user mirrored from Clerk"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    clerk_id = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, default="")
    image_url = Column(Text)
    first_name = Column(String(255))
    last_name = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Project(Base):
    """Folder of spreadsheets"""
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spreadsheets = relationship("Spreadsheet", back_populates="project", cascade="all, delete-orphan")


class Spreadsheet(Base):
    """Spreadsheet whose document is stored as an opaque JSON string"""
    __tablename__ = "spreadsheets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    data = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project = relationship("Project", back_populates="spreadsheets")
    charts = relationship("Chart", back_populates="spreadsheet", cascade="all, delete-orphan")
    dashboards = relationship("Dashboard", back_populates="spreadsheet", cascade="all, delete-orphan")
    conversations = relationship("AIConversation", back_populates="spreadsheet", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="spreadsheet", cascade="all, delete-orphan")


class Chart(Base):
    """Chart over an A1 range of a spreadsheet"""
    __tablename__ = "charts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    spreadsheet_id = Column(Uuid, ForeignKey("spreadsheets.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    range = Column(String(64), nullable=False)
    sheet_name = Column(String(255))
    title = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spreadsheet = relationship("Spreadsheet", back_populates="charts")


class Dashboard(Base):
    """Dashboard built on a spreadsheet"""
    __tablename__ = "dashboards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    spreadsheet_id = Column(Uuid, ForeignKey("spreadsheets.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    widgets_data = Column(Text, nullable=False, default="[]")
    layout = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spreadsheet = relationship("Spreadsheet", back_populates="dashboards")
    widgets = relationship(
        "DashboardWidget",
        back_populates="dashboard",
        cascade="all, delete-orphan",
        order_by="DashboardWidget.created_at"
    )


class DashboardWidget(Base):
    """Chart, metric, table or text tile placed on a dashboard"""
    __tablename__ = "dashboard_widgets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dashboard_id = Column(Uuid, ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    chart_type = Column(String(20))
    range = Column(String(64))
    sheet_name = Column(String(255))
    metric_value = Column(String(255))
    metric_formula = Column(Text)
    metric_column = Column(String(255))
    table_range = Column(String(64))
    table_sheet_name = Column(String(255))
    position_x = Column(Integer, nullable=False, default=0)
    position_y = Column(Integer, nullable=False, default=0)
    position_width = Column(Integer, nullable=False, default=4)
    position_height = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    dashboard = relationship("Dashboard", back_populates="widgets")


class AIAgent(Base):
    """LLM persona configured by a user"""
    __tablename__ = "ai_agents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    provider = Column(String(20), nullable=False)
    model_name = Column(String(255), nullable=False)
    system_prompt = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class AIConversation(Base):
    """Assistant chat thread attached to a spreadsheet"""
    __tablename__ = "ai_conversations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    spreadsheet_id = Column(Uuid, ForeignKey("spreadsheets.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spreadsheet = relationship("Spreadsheet", back_populates="conversations")
    messages = relationship(
        "AIMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="AIMessage.created_at"
    )


class AIMessage(Base):
    """Single user or assistant message"""
    __tablename__ = "ai_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid, ForeignKey("ai_conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    chart_data = Column(Text)
    agent_id = Column(Uuid, ForeignKey("ai_agents.id", ondelete="SET NULL"))
    model_name = Column(String(255))
    provider = Column(String(20))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    conversation = relationship("AIConversation", back_populates="messages")


class Integration(Base):
    """Third-party connection; the access token is stored encrypted"""
    __tablename__ = "integrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(20), nullable=False)
    access_token = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="active")
    last_synced_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class AirtableImport(Base):
    """Link between an Airtable table and the spreadsheet it was imported into"""
    __tablename__ = "airtable_imports"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    spreadsheet_id = Column(Uuid, ForeignKey("spreadsheets.id", ondelete="SET NULL"), index=True)
    integration_id = Column(Uuid, ForeignKey("integrations.id", ondelete="CASCADE"), nullable=False)
    base_id = Column(String(64), nullable=False)
    table_id = Column(String(64), nullable=False)
    table_name = Column(String(255), nullable=False)
    record_count = Column(Integer, nullable=False, default=0)
    last_synced_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Document(Base):
    """Uploaded PDF or Word file with its extracted text and tables"""
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    spreadsheet_id = Column(Uuid, ForeignKey("spreadsheets.id", ondelete="CASCADE"), nullable=False, index=True)
    conversation_id = Column(Uuid, ForeignKey("ai_conversations.id", ondelete="SET NULL"), index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(10), nullable=False)
    extracted_text = Column(Text)
    extracted_tables = Column(Text)
    page_count = Column(Integer)
    processing_status = Column(String(20), nullable=False, default="pending")
    error_message = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spreadsheet = relationship("Spreadsheet", back_populates="documents")
