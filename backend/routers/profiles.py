"""Profiles router - latest stats per tracked user and per-user history."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from middleware.rate_limit import READ_LIMIT, limiter
from models.profile_data import ProfileData
from services.snapshot_store import SnapshotStore
from state import AppState

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["profiles"])


def get_state(request: Request) -> AppState:
    return request.app.state.ctx


def get_store(state: Annotated[AppState, Depends(get_state)]) -> SnapshotStore:
    return state.store


@router.get("/profiles", response_model=list[ProfileData])
@limiter.limit(READ_LIMIT)
async def get_profiles(
    request: Request,
    store: Annotated[SnapshotStore, Depends(get_store)],
):
    """Get the latest snapshot for every tracked user.

    Users without any recorded snapshot are left out.
    """
    return await store.latest_per_account()


@router.get("/history", response_model=list[ProfileData])
@limiter.limit(READ_LIMIT)
async def get_history(
    request: Request,
    store: Annotated[SnapshotStore, Depends(get_store)],
    owner: str | None = Query(None, description="Display name of the tracked user"),
):
    """Get the full snapshot history for one user, oldest first.

    Unknown users get an empty list, same as users with no data yet.
    """
    if not owner:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing 'owner' query parameter",
        )
    return await store.history_for(owner)
