from feedesk.core.models.student import Student
from feedesk.core.models.payment import Payment
from feedesk.core.models.fee_config import FeeConfig
from feedesk.core.models.notification_setting import NotificationSetting

__all__ = [
    "Student",
    "Payment",
    "FeeConfig",
    "NotificationSetting",
]
