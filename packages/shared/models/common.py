"""
Static reference data for regulatory categories and dossier types.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .enums import CategoryId, DossierType


class CategoryDefinition(BaseModel):
    id: CategoryId
    display_name: str
    required: bool = True
    max_files: int = 10


CATEGORY_DEFINITIONS: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(id=CategoryId.PROTOCOL, display_name="Protocol", max_files=1),
    CategoryDefinition(id=CategoryId.IB, display_name="Investigator's Brochure", max_files=1),
    CategoryDefinition(id=CategoryId.QUALITY, display_name="Quality Information", max_files=3),
    CategoryDefinition(id=CategoryId.NONCLINICAL, display_name="Non-clinical Data", max_files=5),
    CategoryDefinition(id=CategoryId.CLINICAL, display_name="Clinical Data", max_files=10),
    CategoryDefinition(id=CategoryId.APPLICATION, display_name="Application Form", max_files=1),
    CategoryDefinition(id=CategoryId.OTHER, display_name="Other Documents", required=False, max_files=5),
)

# Canonical priority order; never depends on input arrival order.
CATEGORY_ORDER: tuple[CategoryId, ...] = tuple(d.id for d in CATEGORY_DEFINITIONS)

_DEFINITIONS_BY_ID = {d.id: d for d in CATEGORY_DEFINITIONS}

DOSSIER_TYPE_NAMES: dict[str, str] = {
    DossierType.IMPD.value: "Investigational Medicinal Product Dossier",
    DossierType.IND.value: "Investigational New Drug Application",
    DossierType.CTD.value: "Common Technical Document",
    DossierType.ECTD.value: "Electronic Common Technical Document",
}

DEFAULT_DOSSIER_TITLE = "Clinical Dossier"


def category_definition(category: CategoryId) -> CategoryDefinition:
    return _DEFINITIONS_BY_ID[category]


def category_display_name(category: CategoryId) -> str:
    return _DEFINITIONS_BY_ID[category].display_name


def dossier_type_name(dossier_type: str) -> Optional[str]:
    """Full name for a known dossier type, None otherwise."""
    return DOSSIER_TYPE_NAMES.get((dossier_type or "").strip().lower())
