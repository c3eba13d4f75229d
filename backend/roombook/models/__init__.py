from roombook.models.academic_period import AcademicPeriod, AcademicPeriodType  # noqa: F401
from roombook.models.activity_log import ActivityLog  # noqa: F401
from roombook.models.cleaning import CleaningObservationType, CleaningReport  # noqa: F401
from roombook.models.course import Course  # noqa: F401
from roombook.models.faculty import Faculty  # noqa: F401
from roombook.models.notification import Notification, NotificationType  # noqa: F401
from roombook.models.reservation import EventType, Reservation, ReservationStatus  # noqa: F401
from roombook.models.room import Room, RoomStatus  # noqa: F401
from roombook.models.user import User, UserRole  # noqa: F401
