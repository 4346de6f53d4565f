from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from models.database import Base

class RssFeed(Base):
    __tablename__ = "rss_feeds"

    id = Column(Integer, primary_key=True)
    feed_url = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    opportunity_type = Column(String(50), nullable=False, default="generic")
    enabled = Column(Boolean, default=True)

    # Processing policy
    ai_provider = Column(String(20))  # null = use the active provider
    ai_model = Column(String(100))
    enable_scraping = Column(Boolean, default=True)
    enable_ai_processing = Column(Boolean, default=True)
    auto_publish = Column(Boolean, default=False)
    quality_threshold = Column(Float, default=0.6)
    fallback_featured_image_url = Column(Text)

    # Counters, only ever incremented by the pipeline
    total_processed = Column(Integer, default=0, nullable=False)
    total_published = Column(Integer, default=0, nullable=False)

    last_fetched = Column(DateTime)
    last_error = Column(Text)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    queue_items = relationship("QueueItem", back_populates="feed")
    opportunities = relationship("Opportunity", back_populates="source_feed")

    def __repr__(self):
        return f"<RssFeed(id={self.id}, name='{self.name}', enabled={self.enabled})>"
