from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response

from .config import Settings
from .lookup import get_chains, get_rest, get_settings, get_store, run_lookup
from .models import CatalogResponse, normalize_release
from .resolver import Strategy
from .store import CatalogStore, RestClient

router = APIRouter(prefix="/api/releases", tags=["releases"])


@router.get("/label/{label_id}", response_model=CatalogResponse)
async def get_label_releases(
    label_id: str,
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    """Releases of a label, matched by id, hyphen-less id or label name."""
    status, body, _ = await run_lookup(
        label_id,
        endpoint="label_releases",
        entity="releases",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        limit=limit or settings.default_limit,
        transform=normalize_release,
    )
    response.status_code = status
    return body


@router.get("/{release_id}", response_model=CatalogResponse)
async def get_release(
    release_id: str,
    response: Response,
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    status, body, _ = await run_lookup(
        release_id,
        endpoint="release",
        entity="release",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        transform=normalize_release,
    )
    response.status_code = status
    return body


@router.get("/{release_id}/tracks", response_model=CatalogResponse)
async def get_release_tracks(
    release_id: str,
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    status, body, _ = await run_lookup(
        release_id,
        endpoint="release_tracks",
        entity="tracks",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        limit=limit or settings.default_limit,
    )
    response.status_code = status
    return body
