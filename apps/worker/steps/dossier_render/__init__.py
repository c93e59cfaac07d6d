from .pages import (
    cover_page,
    divider_page,
    document_cover_page,
    error_page,
    reference_page,
    summary_page,
)

__all__ = [
    "cover_page",
    "divider_page",
    "document_cover_page",
    "error_page",
    "reference_page",
    "summary_page",
]
