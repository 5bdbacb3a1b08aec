"""
================================================================================
Allure Report Utilities
================================================================================

Helpers for publishing interaction diagnostics to Allure reports.

Features:
- Typed attachment helpers (JSON, PNG, MIME-typed blobs)
- Publishing of SmartLogger exports (name / content / MIME type blobs)

================================================================================
"""

import json
from typing import Any, Iterable

import allure
from loguru import logger

from e2e_tools.common import safe_json_serialize


# MIME type -> Allure attachment type for the blobs SmartLogger produces
_ATTACHMENT_TYPES = {
    "application/json": allure.attachment_type.JSON,
    "text/plain": allure.attachment_type.TEXT,
    "text/html": allure.attachment_type.HTML,
    "image/png": allure.attachment_type.PNG,
}

# Fallback extensions for MIME types Allure has no enum member for
_EXTENSIONS = {
    "text/markdown": "md",
}


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=safe_json_serialize)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_png(image: bytes, name: str = "Screenshot"):
    """Attach a PNG screenshot to Allure report."""
    allure.attach(
        image,
        name=name,
        attachment_type=allure.attachment_type.PNG
    )


def attach_blob(name: str, content: Any, mime_type: str):
    """
    Attach arbitrary content by MIME type.

    Known MIME types map onto Allure's attachment enum; anything else is
    passed through as a raw MIME string with a best-effort extension.

    Args:
        name: Attachment name
        content: str or bytes payload
        mime_type: MIME type, e.g. "text/markdown"
    """
    attachment_type = _ATTACHMENT_TYPES.get(mime_type)
    if attachment_type is not None:
        allure.attach(content, name=name, attachment_type=attachment_type)
        return

    extension = _EXTENSIONS.get(mime_type, "txt")
    allure.attach(content, name=name, attachment_type=mime_type, extension=extension)


def attach_exported(attachments: Iterable[Any]) -> int:
    """
    Publish exported log attachments to the running Allure report.

    Args:
        attachments: Objects exposing ``name``, ``content`` and ``mime_type``
            (see ``SmartLogger.export_for_reporting``)

    Returns:
        Number of attachments published
    """
    published = 0
    for attachment in attachments:
        try:
            attach_blob(attachment.name, attachment.content, attachment.mime_type)
            published += 1
        except Exception as e:
            logger.warning(f"Failed to attach '{attachment.name}' to Allure: {e}")
    return published


__all__ = [
    "attach_json",
    "attach_png",
    "attach_blob",
    "attach_exported",
]
