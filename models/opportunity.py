from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from models.database import Base

DRAFT = "draft"
PUBLISHED = "published"
REJECTED = "rejected"


class Opportunity(Base):
    __tablename__ = "opportunities"

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    slug = Column(String(150), unique=True, nullable=False)
    excerpt = Column(Text)
    content = Column(Text)
    opportunity_type = Column(String(50), nullable=False, index=True)

    # Dedup key; rejected rows may share it with a later accepted row
    source_url = Column(Text, index=True)
    source_feed_id = Column(Integer, ForeignKey("rss_feeds.id"))

    status = Column(String(20), nullable=False, default=DRAFT, index=True)
    rejection_reason = Column(Text)
    confidence_score = Column(Float)
    ai_provider = Column(String(20))

    # Extracted details
    deadline = Column(String(100))
    prize_value = Column(String(255))
    location = Column(String(255))
    featured_image_url = Column(Text)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    source_feed = relationship("RssFeed", back_populates="opportunities")

    def __repr__(self):
        return f"<Opportunity(id={self.id}, slug='{self.slug}', status='{self.status}')>"
