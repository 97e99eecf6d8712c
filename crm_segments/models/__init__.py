# crm_segments/models/__init__.py
# Importing every model here registers it on Base.metadata.

from .customer import Customer
from .segment import Segment
from .campaign import Campaign, CampaignStatus, LaunchState
from .communication_log import CommunicationLog
