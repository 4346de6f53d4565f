from models.database import Base
from models.rss_feed import RssFeed
from models.queue_item import QueueItem
from models.opportunity import Opportunity
from models.settings import AISetting, SystemSetting
