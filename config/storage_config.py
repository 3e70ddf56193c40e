"""StorageConfig model."""

from pathlib import Path

from pydantic import BaseModel, Field

from .defaults import DEFAULT_BLOBS_DIR_NAME, DEFAULT_DATA_DIR, DEFAULT_DOCUMENT_NAME


class StorageConfig(BaseModel):
    """Where conversations and blobs are kept on disk."""

    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Directory holding the chat document and the blob store",
    )
    document_name: str = Field(
        default=DEFAULT_DOCUMENT_NAME,
        description="File name of the persisted chat document",
    )
    blobs_dir: str = Field(
        default=DEFAULT_BLOBS_DIR_NAME,
        description="Blob store directory, relative to data_dir",
    )

    @property
    def document_path(self) -> Path:
        return self.data_dir.expanduser() / self.document_name

    @property
    def blobs_path(self) -> Path:
        return self.data_dir.expanduser() / self.blobs_dir
