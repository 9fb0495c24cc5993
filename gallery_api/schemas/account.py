"""
Account export/import schemas.
"""
from typing import List

from pydantic import Field

from gallery_api.schemas.base import ApiModel


class ImportResult(ApiModel):
    success: bool = True
    imported_files: List[str] = Field(default_factory=list)
