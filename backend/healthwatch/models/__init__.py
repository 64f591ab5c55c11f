from healthwatch.models.alert import Alert
from healthwatch.models.base import Base, TimestampMixin, model_to_dict
from healthwatch.models.reading import HealthReading
from healthwatch.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "model_to_dict",
    "Alert",
    "HealthReading",
    "User",
]
