from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from models.database import Base

class AISetting(Base):
    """Stored credentials for one LLM provider."""
    __tablename__ = "ai_settings"

    id = Column(Integer, primary_key=True)
    provider = Column(String(20), unique=True, nullable=False)
    model = Column(String(100))
    api_key = Column(Text)
    is_active = Column(Boolean, default=False, index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<AISetting(provider='{self.provider}', model='{self.model}', is_active={self.is_active})>"


class SystemSetting(Base):
    """Key/value settings, e.g. prompts.<opportunity_type>."""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SystemSetting(key='{self.key}')>"
