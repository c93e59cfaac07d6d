"""
Step 1 — Category classification.
Groups input documents by regulatory category and exposes the groups in
canonical priority order.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from packages.shared.models import (
    CATEGORY_ORDER,
    CategoryId,
    InputDocument,
    category_definition,
)

logger = logging.getLogger(__name__)

GroupedDocuments = dict[CategoryId, list[InputDocument]]


def classify(documents: Iterable[InputDocument]) -> GroupedDocuments:
    """
    Group documents by category.

    Missing or unrecognised categories fall into `other`. Documents keep
    their arrival order inside a group, and the returned dict iterates in
    canonical order with absent categories skipped.
    """
    buckets: dict[CategoryId, list[InputDocument]] = {}
    for doc in documents:
        category = doc.category_id
        if category == CategoryId.OTHER and doc.category != CategoryId.OTHER.value:
            logger.debug(f"Document {doc.name!r} has unrecognised category {doc.category!r}; using 'other'")
        buckets.setdefault(category, []).append(doc)

    return {category: buckets[category] for category in CATEGORY_ORDER if category in buckets}


def document_total(grouped: GroupedDocuments) -> int:
    return sum(len(docs) for docs in grouped.values())


def missing_required_categories(grouped: GroupedDocuments) -> list[CategoryId]:
    """Required categories with no documents, in canonical order."""
    return [
        category
        for category in CATEGORY_ORDER
        if category_definition(category).required and not grouped.get(category)
    ]


def category_limit_violations(grouped: GroupedDocuments) -> dict[CategoryId, int]:
    """Categories holding more files than allowed, mapped to their file count."""
    violations: dict[CategoryId, int] = {}
    for category, docs in grouped.items():
        if len(docs) > category_definition(category).max_files:
            violations[category] = len(docs)
    return violations
