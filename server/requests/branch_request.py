"""BranchRequest model."""

from pydantic import BaseModel


class BranchRequest(BaseModel):
    messageID: str | None = None  # cutoff, inclusive; None copies everything
