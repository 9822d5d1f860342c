"""
Source Unit Model
Identifies the one C file a save event or run request is about.
The editor owns content and dirty state; the pipeline only reads these fields.
"""
import os

from pydantic import BaseModel, field_validator


class SourceUnit(BaseModel):
    path: str
    language_id: str = "c"

    @field_validator("path")
    @classmethod
    def absolute_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("path must not be empty")
        return os.path.abspath(v)

    @property
    def normalized_path(self) -> str:
        return normalize_path(self.path)


def normalize_path(path: str) -> str:
    """Comparable form of a path: absolute, normalized, case-folded on Windows."""
    return os.path.normcase(os.path.normpath(os.path.abspath(path)))
