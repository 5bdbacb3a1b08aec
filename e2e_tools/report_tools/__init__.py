"""Allure reporting helpers."""

from .allure_utils import (
    attach_blob,
    attach_exported,
    attach_json,
    attach_png,
)

__all__ = [
    "attach_blob",
    "attach_exported",
    "attach_json",
    "attach_png",
]
