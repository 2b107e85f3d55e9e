import enum


class MBAStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class Platform(str, enum.Enum):
    GOOGLE_ADS = "GOOGLE_ADS"
    META = "META"
    BING = "BING"
    TIKTOK = "TIKTOK"
    LINKEDIN = "LINKEDIN"
    OTHER = "OTHER"


class InvoiceType(str, enum.Enum):
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
