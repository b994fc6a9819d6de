"""Classifiers package."""
from taxdocs.services.classifiers.document_classifier import (
    DocumentClassifier,
    confidence_level,
    get_document_classifier,
    icon_for,
    is_confidence_acceptable,
    label_for,
    recommended_action,
)

__all__ = [
    "DocumentClassifier",
    "confidence_level",
    "get_document_classifier",
    "icon_for",
    "is_confidence_acceptable",
    "label_for",
    "recommended_action",
]
