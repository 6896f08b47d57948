"""SQLAlchemy Models for upstream records."""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Index, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class UpstreamRow(Base):
    """Registered upstream endpoint."""
    __tablename__ = "upstreams"
    id = Column(String(36), primary_key=True)
    type = Column(String(255), nullable=False)
    host = Column(String(512), nullable=False)
    path = Column(String(512))
    headers = Column(JSON, default=dict)
    searchs = Column(JSON, default=dict)
    auth = Column(JSON, default=dict)
    interval = Column(Float, default=0.001, nullable=False)
    weight = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_upstream_created", "created_at"),
        Index("idx_upstream_type_weight", "type", "weight"),
    )
