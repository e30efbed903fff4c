"""Glue between the HTTP handlers and the resolver.

Each handler names its chain, passes the identifier and gets back a
``CatalogResponse`` plus the HTTP status to send. Not-found is not an HTTP
error here: by default it is a 200 with an empty (or fallback) ``data``
list, and ``metadata`` tells the client what happened. Endpoints can opt
into another status with ``CATALOG_EMPTY_STATUS``.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import HTTPException, Request

from .config import Settings
from .fallback import FallbackProvider
from .logger import get_logger
from .models import CatalogResponse, ResponseMetadata
from .resolver import ResolutionContext, ResolutionOutcome, Strategy, resolve, validate_identifier
from .store import CatalogStore, RestClient

logger = get_logger(__name__)

FALLBACK_SOURCE = "fallback"


# ---------- DEPENDENCIES ----------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> CatalogStore:
    store = request.app.state.store
    if store is None:
        raise HTTPException(status_code=503, detail="Catalog store is not configured")
    return store


def get_rest(request: Request) -> Optional[RestClient]:
    return request.app.state.rest


def get_chains(request: Request) -> Dict[str, List[Strategy]]:
    return request.app.state.chains


# ---------- RESPONSE BUILDING ----------
def _as_rows(payload: Any) -> List[Dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    return [payload]


def build_response(
    outcome: ResolutionOutcome,
    *,
    entity: str,
    settings: Settings,
    endpoint: str,
    fallback: Optional[FallbackProvider] = None,
    transform: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    took_ms: int = 0,
) -> Tuple[int, CatalogResponse]:
    status = 200
    if outcome.found:
        data = list(outcome.results)
        source = outcome.matched_strategy
        message = f"Found {len(data)} {entity} for {outcome.identifier}"
    else:
        payload = fallback(outcome.identifier) if fallback else None
        data = _as_rows(payload)
        if data:
            source = FALLBACK_SOURCE
            message = f"No {entity} found for {outcome.identifier}; returning fallback data"
        else:
            source = None
            message = f"Found 0 {entity} for {outcome.identifier}"
            status = settings.empty_status_for(endpoint)

    if transform:
        data = [transform(row) for row in data]

    metadata = ResponseMetadata(**outcome.to_metadata(), source=source, count=len(data), took_ms=took_ms)
    return status, CatalogResponse(success=outcome.found, message=message, data=data, metadata=metadata)


async def run_lookup(
    identifier: str,
    *,
    endpoint: str,
    entity: str,
    chains: Dict[str, List[Strategy]],
    settings: Settings,
    store: CatalogStore,
    rest: Optional[RestClient] = None,
    limit: Optional[int] = None,
    values: Optional[Dict[str, Any]] = None,
    fallback: Optional[FallbackProvider] = None,
    transform: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    deadline: Optional[float] = None,
) -> Tuple[int, CatalogResponse, ResolutionOutcome]:
    """Resolve ``identifier`` with the ``endpoint`` chain and build the response.

    ``deadline`` overrides ``settings.resolve_deadline`` when a handler has
    already spent part of the request's budget.
    """
    key = validate_identifier(identifier)
    t0 = time.time()
    context = ResolutionContext(store=store, rest=rest, limit=limit, values=dict(values or {}))
    budget = settings.resolve_deadline if deadline is None else deadline
    outcome = await resolve(key, chains[endpoint], context, deadline=budget)
    took_ms = int((time.time() - t0) * 1000)
    status, body = build_response(
        outcome,
        entity=entity,
        settings=settings,
        endpoint=endpoint,
        fallback=fallback,
        transform=transform,
        took_ms=took_ms,
    )
    if outcome.errors:
        logger.warning("%s %s strategy errors: %s", endpoint, key, "; ".join(outcome.errors))
    logger.info(
        "%s %s -> status=%d source=%s count=%d took_ms=%d",
        endpoint, key, status, body.metadata.source, body.metadata.count, took_ms,
    )
    return status, body, outcome
