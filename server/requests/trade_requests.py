"""Import/export request models."""

from typing import Any

from pydantic import BaseModel


class ImportRequest(BaseModel):
    fileName: str = "upload.json"
    data: Any
    preventIdClash: bool = False
