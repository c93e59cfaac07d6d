"""
Error taxonomy for dossier compilation.
"""
from __future__ import annotations

from typing import Optional

from packages.shared.models.domain import DocumentKey


class DossierError(Exception):
    """Base class for compilation errors."""


class ConfigurationError(DossierError):
    """Invalid top-level input; raised before any work begins."""


class DocumentMergeError(DossierError):
    """A single document's content could not be embedded."""

    def __init__(self, message: str, *, key: Optional[DocumentKey] = None, document_name: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.document_name = document_name


class RenderError(DossierError):
    """A synthetic page (cover, divider, ToC, summary) could not be produced."""


class CompilationCancelled(DossierError):
    """The caller cancelled the run between documents."""
