import time
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response

from .config import Settings
from .fallback import FallbackProvider, get_artist_fallback, get_releases_fallback
from .lookup import get_chains, get_rest, get_settings, get_store, run_lookup
from .models import CatalogResponse, normalize_artist, normalize_release
from .resolver import ResolutionContext, Strategy, resolve
from .store import CatalogStore, RestClient

router = APIRouter(prefix="/api/artists", tags=["artists"])


@router.get("/label/{label_id}", response_model=CatalogResponse)
async def get_label_artists(
    label_id: str,
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
) -> CatalogResponse:
    """List a label's artists."""
    status, body, _ = await run_lookup(
        label_id,
        endpoint="label_artists",
        entity="artists",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        limit=limit or settings.default_limit,
        transform=normalize_artist,
    )
    response.status_code = status
    return body


@router.get("/{artist_id}", response_model=CatalogResponse)
async def get_artist(
    artist_id: str,
    response: Response,
    use_fallback: bool = Query(True, alias="fallback", description="Serve placeholder data when nothing is found"),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
    fallback_provider: FallbackProvider = Depends(get_artist_fallback),
) -> CatalogResponse:
    """Look up one artist by internal id or Spotify id."""
    status, body, _ = await run_lookup(
        artist_id,
        endpoint="artist",
        entity="artist",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        fallback=fallback_provider if use_fallback else None,
        transform=normalize_artist,
    )
    response.status_code = status
    return body


@router.get("/{artist_id}/releases", response_model=CatalogResponse)
@router.get("/{artist_id}/all-releases", response_model=CatalogResponse)
async def get_artist_releases(
    artist_id: str,
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100),
    use_fallback: bool = Query(True, alias="fallback", description="Serve placeholder data when nothing is found"),
    settings: Settings = Depends(get_settings),
    store: CatalogStore = Depends(get_store),
    rest: Optional[RestClient] = Depends(get_rest),
    chains: Dict[str, List[Strategy]] = Depends(get_chains),
    fallback_provider: FallbackProvider = Depends(get_releases_fallback),
) -> CatalogResponse:
    """Releases for an artist.

    The artist row is resolved first so the name and label based strategies
    have something to match on; a missing artist does not stop the release
    lookup, the id based strategies still run. Both lookups share one
    ``resolve_deadline``.
    """
    started = time.monotonic()
    artist = await resolve(
        artist_id,
        chains["artist"],
        ResolutionContext(store=store, rest=rest),
        deadline=settings.resolve_deadline,
    )
    values = {"artist": artist.first} if artist.found else {}
    remaining = None
    if settings.resolve_deadline is not None:
        remaining = max(0.0, settings.resolve_deadline - (time.monotonic() - started))
    status, body, _ = await run_lookup(
        artist_id,
        endpoint="artist_releases",
        entity="releases",
        chains=chains,
        settings=settings,
        store=store,
        rest=rest,
        limit=limit or settings.default_limit,
        values=values,
        fallback=fallback_provider if use_fallback else None,
        transform=normalize_release,
        deadline=remaining,
    )
    body.metadata.related = {"artist": artist.first, "artist_source": artist.matched_strategy}
    response.status_code = status
    return body
