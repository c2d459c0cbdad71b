"""Common data schemas."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PageImage:
    """One uploaded chapter page.

    Attributes:
        filename: Opaque unique identifier assigned by the upload layer.
                  Not an ordering signal.
        data: Directly embeddable image reference (data URI)
    """
    filename: str
    data: str

    def __repr__(self) -> str:
        return f"PageImage(filename={self.filename!r}, data=<{len(self.data)} chars>)"
