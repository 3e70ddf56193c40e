"""
Shared pytest fixtures for all tests.
"""
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from config.features import feature_manager
from core import ClientWorkspace, ConversationStore, FileBlobStore, TextTokenizer, TokenEstimator
from core.fragments import create_data_ref_blob, create_image_content_fragment, create_text_content_fragment
from core.messages import create_message_from_fragments, create_text_message


@pytest.fixture(autouse=True)
def reset_features() -> Iterator[None]:
    """Run every test on flag defaults, with the character heuristic for text."""
    feature_manager.reset()
    feature_manager.disable("exact_tokenizer")
    yield
    feature_manager.reset()


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def estimator() -> TokenEstimator:
    """Estimator that never loads a tiktoken encoding."""
    return TokenEstimator(tokenizer=TextTokenizer(use_exact=False))


@pytest.fixture
def workspace() -> ClientWorkspace:
    return ClientWorkspace()


@pytest.fixture
def store(estimator: TokenEstimator, workspace: ClientWorkspace) -> ConversationStore:
    """A fresh in-memory store holding the default empty conversation."""
    return ConversationStore(estimator=estimator, chat_model_id="gpt-4o", workspace=workspace)


@pytest.fixture
def blob_store(temp_dir: Path) -> FileBlobStore:
    return FileBlobStore(temp_dir / "blobs")


@pytest.fixture
def text_message():
    """Factory for single-text messages."""
    return create_text_message


@pytest.fixture
def image_message():
    """Factory for a user message showing one stored blob."""

    def make(blob_id: str):
        data_ref = create_data_ref_blob(blob_id, "image/png", 10)
        return create_message_from_fragments(
            "user",
            (create_text_content_fragment("look"), create_image_content_fragment(data_ref, width=512, height=512)),
        )

    return make
