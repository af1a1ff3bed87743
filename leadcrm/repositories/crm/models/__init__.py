"""Import every model so ``Base.metadata`` knows all CRM tables."""

from leadcrm.repositories.crm.models.follow_up_model import FollowUp, FollowUpHistory
from leadcrm.repositories.crm.models.lead_model import Lead
from leadcrm.repositories.crm.models.round_robin_model import RoundRobinCursor
from leadcrm.repositories.crm.models.user_model import User

__all__ = ["FollowUp", "FollowUpHistory", "Lead", "RoundRobinCursor", "User"]
