from .appointment import Appointment
from .medication import Medication
from .push_subscription import PushSubscription

__all__ = ["Appointment", "Medication", "PushSubscription"]
