"""
Chat store server entry point.
"""
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import Config, feature_manager, get_config
from core import ChatDocumentStore, ConversationStore, FileBlobStore, PersistenceAdapter, TextTokenizer, TokenEstimator, open_store
from server import app, get_persistence, set_persistence, set_store
from server.logging_config import setup_logging, timed

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)

# Constants
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


@timed("Chat store load", level=logging.INFO)
async def load_store(config: Config) -> ConversationStore:
    """Rehydrate the store described by the configuration."""
    storage = config.storage
    estimator = TokenEstimator(tokenizer=TextTokenizer(config.tokens.exact_tokenizer))
    return await open_store(
        ChatDocumentStore(storage.document_path),
        blob_store=FileBlobStore(storage.blobs_path),
        estimator=estimator,
        chat_model_id=config.tokens.chat_model,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the store on startup and flush pending writes on shutdown."""
    config = get_config()
    feature_manager.load_from_config(config.model_dump())

    logger.info("Starting chat store server")
    logger.info("Data directory: %s", config.storage.data_dir)
    logger.info("Chat model: %s", config.tokens.chat_model)

    store = await load_store(config)
    set_store(store)
    adapter = PersistenceAdapter(store, ChatDocumentStore(config.storage.document_path))
    adapter.start()
    set_persistence(adapter)
    logger.info("Chat store ready with %d conversations", len(store.conversations))

    yield

    # Cleanup
    persistence = get_persistence()
    if persistence is not None:
        logger.info("Flushing pending writes...")
        await persistence.close()
        set_persistence(None)
    if store.gc is not None:
        await store.gc.wait_idle()
    logger.info("Chat store stopped")


app.router.lifespan_context = lifespan


def main() -> None:
    """Start the chat store server."""
    host = os.environ.get("HOST", DEFAULT_HOST)
    port = int(os.environ.get("PORT", str(DEFAULT_PORT)))

    logger.info("Server listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
