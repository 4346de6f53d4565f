from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from models.database import Base

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"
DUPLICATE = "duplicate"

TERMINAL_STATUSES = (COMPLETED, FAILED, DUPLICATE)


class QueueItem(Base):
    __tablename__ = "queue_items"
    __table_args__ = (
        UniqueConstraint("feed_id", "item_url", name="uq_queue_items_feed_url"),
    )

    id = Column(Integer, primary_key=True)
    feed_id = Column(Integer, ForeignKey("rss_feeds.id"), nullable=False, index=True)
    opportunity_type = Column(String(50), nullable=False)

    # Raw feed entry
    item_url = Column(Text, nullable=False)
    item_title = Column(Text, nullable=False)
    item_content = Column(Text)
    item_image_url = Column(Text)

    status = Column(String(20), nullable=False, default=PENDING, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)

    created_at = Column(DateTime, default=func.now(), index=True)
    claimed_at = Column(DateTime)
    completed_at = Column(DateTime)

    feed = relationship("RssFeed", back_populates="queue_items")

    def __repr__(self):
        return f"<QueueItem(id={self.id}, status='{self.status}', url='{self.item_url[:50]}')>"
