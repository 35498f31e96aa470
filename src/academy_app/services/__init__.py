from .auth import AuthGate
from .checkin import CheckInFlow, CheckInSessionView, CheckInStep
from .errors import DuplicatePhoneError, InvalidTransitionError, LoadFailure, ValidationError
from .notifications import Notification, Notifier
from .queries import CourseStats, PaymentStatus
from .store import AcademyStore

__all__ = [
	"AcademyStore",
	"AuthGate",
	"CheckInFlow",
	"CheckInSessionView",
	"CheckInStep",
	"CourseStats",
	"DuplicatePhoneError",
	"InvalidTransitionError",
	"LoadFailure",
	"Notification",
	"Notifier",
	"PaymentStatus",
	"ValidationError",
]
