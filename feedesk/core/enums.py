from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class FeeConfigType(str, Enum):
    DEVELOPMENT_FEE = "development_fee"
    BUS_STOP = "bus_stop"


class ReceiptLayoutName(str, Enum):
    THERMAL_2X3 = "2x3-thermal"
    CARD_3X5 = "3x5"
    A6 = "a6"
    A4_9UP = "a4-9up"


class NotificationChannel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"


class ReportType(str, Enum):
    CLASS_WISE = "class-wise"
    BUS_STOP = "bus-stop"
    MONTHLY = "monthly"
    SUMMARY = "summary"
