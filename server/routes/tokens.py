"""
Token estimation endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException

from core import ModelProfileNotFoundError

from ..requests import TokenEstimateRequest, TokenEstimateResult
from ..state import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tokens/estimate")
async def estimate_tokens_route(request: TokenEstimateRequest) -> TokenEstimateResult:
    """
    Estimate the token cost of a message's fragments for a model.

    Returns:
        The estimate, glue tokens included
    """
    estimator = get_store().estimator
    try:
        profile = estimator.require_profile(request.modelID)
    except ModelProfileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown model: {request.modelID}")
    tokens = estimator.estimate_tokens(profile, request.role, request.fragments)
    return TokenEstimateResult(modelID=profile.id, tokens=tokens)
