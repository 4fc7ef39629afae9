"""
Flat-file content: record format, locked storage, and content models.
"""

from .models import (
    ContentRecord, ContentTranslation, File, Identifiable, ModelWithContent,
    Page, Site, User,
)

__all__ = [
    "ContentRecord", "ContentTranslation", "File", "Identifiable",
    "ModelWithContent", "Page", "Site", "User",
]
