# crm_segments/crud/__init__.py

from .crud_campaign import campaign
from .crud_communication_log import communication_log
from .crud_customer import customer
from .crud_segment import segment
