"""
HTTP request models for the API.

These are Pydantic models for validating and parsing API requests.
"""

from .branch_request import BranchRequest
from .create_conversation_request import CreateConversationRequest
from .delete_conversations_request import DeleteConversationsRequest, DeleteConversationsResult
from .message_requests import AppendMessageRequest, EditMessageRequest, TruncateRequest
from .token_estimate_request import TokenEstimateRequest, TokenEstimateResult
from .trade_requests import ImportRequest
from .update_conversation_request import UpdateConversationRequest

__all__ = [
    # Conversation requests
    "CreateConversationRequest",
    "UpdateConversationRequest",
    "BranchRequest",
    "DeleteConversationsRequest",
    "DeleteConversationsResult",
    "ImportRequest",
    # Message requests
    "AppendMessageRequest",
    "EditMessageRequest",
    "TruncateRequest",
    # Tokens
    "TokenEstimateRequest",
    "TokenEstimateResult",
]
