from .common import (
    CATEGORY_DEFINITIONS,
    CATEGORY_ORDER,
    DEFAULT_DOSSIER_TITLE,
    DOSSIER_TYPE_NAMES,
    CategoryDefinition,
    category_definition,
    category_display_name,
    dossier_type_name,
)
from .domain import (
    PDF_MIME_TYPE,
    CategoryEntry,
    CompileConfig,
    CompiledArtifact,
    CompileResult,
    DocumentEntry,
    DocumentKey,
    InputDocument,
    PaginationPlan,
    Warning,
)
from .enums import CategoryId, DocumentOutcome, DossierType, MimeKind, PageCountMode

__all__ = [
    "CATEGORY_DEFINITIONS",
    "CATEGORY_ORDER",
    "DEFAULT_DOSSIER_TITLE",
    "DOSSIER_TYPE_NAMES",
    "PDF_MIME_TYPE",
    "CategoryDefinition",
    "CategoryEntry",
    "CategoryId",
    "CompileConfig",
    "CompiledArtifact",
    "CompileResult",
    "DocumentEntry",
    "DocumentKey",
    "DocumentOutcome",
    "DossierType",
    "InputDocument",
    "MimeKind",
    "PageCountMode",
    "PaginationPlan",
    "Warning",
    "category_definition",
    "category_display_name",
    "dossier_type_name",
]
