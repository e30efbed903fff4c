from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response

from .config import Settings
from .lookup import get_chains, get_rest, get_settings, get_store, run_lookup
from .models import CatalogResponse
from .resolver import Strategy
from .store import CatalogStore, RestClient

router = APIRouter(prefix="/api/tracks", tags=["tracks"])


@router.get("/label/{label_id}", response_model=CatalogResponse)
async def get_label_tracks(
    label_id: str,
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    status, body, _ = await run_lookup(
        label_id,
        endpoint="label_tracks",
        entity="tracks",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        limit=limit or settings.default_limit,
    )
    response.status_code = status
    return body


@router.get("/{track_id}", response_model=CatalogResponse)
async def get_track(
    track_id: str,
    response: Response,
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    status, body, _ = await run_lookup(
        track_id,
        endpoint="track",
        entity="track",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
    )
    response.status_code = status
    return body
