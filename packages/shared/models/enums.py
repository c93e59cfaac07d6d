from enum import Enum


class CategoryId(str, Enum):
    PROTOCOL = "protocol"
    IB = "ib"  # Investigator's Brochure
    QUALITY = "quality"
    NONCLINICAL = "nonclinical"
    CLINICAL = "clinical"
    APPLICATION = "application"
    OTHER = "other"


class MimeKind(str, Enum):
    PDF = "pdf"
    OTHER = "other"


class DocumentOutcome(str, Enum):
    EMBEDDED = "embedded"
    REFERENCED = "referenced"
    FAILED = "failed"


class PageCountMode(str, Enum):
    ESTIMATE = "estimate"  # size heuristic
    MEASURED = "measured"  # page count of the staged source


class DossierType(str, Enum):
    IMPD = "impd"
    IND = "ind"
    CTD = "ctd"
    ECTD = "ectd"
