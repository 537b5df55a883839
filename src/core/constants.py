"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Wire formats. These shapes cross the API boundary untyped.
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
DATE_FORMAT = "%Y-%m-%d"

MINUTES_PER_DAY = 1440
LAST_MINUTE_OF_DAY = MINUTES_PER_DAY - 1

# Appointment statuses. Only 'scheduled' appointments occupy time.
APPOINTMENT_STATUS_SCHEDULED = "scheduled"
APPOINTMENT_STATUS_COMPLETED = "completed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"
APPOINTMENT_STATUS_NO_SHOW = "no_show"
APPOINTMENT_STATUSES = [
    APPOINTMENT_STATUS_SCHEDULED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CANCELLED,
    APPOINTMENT_STATUS_NO_SHOW,
]

# Closure types shown in the admin closure manager
CLOSURE_TYPES = ["vacation", "holiday", "personal", "maintenance"]

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_REASON_LENGTH = 500

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # Next.js dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Day labels, 0=Sunday
DAY_LABELS = ["Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"]
