"""Helpers for parsing model output."""

from .json_payload import clean_json_fence, extract_json_object

__all__ = ["clean_json_fence", "extract_json_object"]
