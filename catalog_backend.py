"""Label catalog backend.

This FastAPI application serves the label's artists, releases and tracks
from a Supabase project. Every lookup walks an ordered chain of strategies
(join table, direct reference, stored function, name match, REST API) and
answers with the first one that finds something, reporting in the response
metadata which strategy matched and which were tried. When nothing matches,
the artist endpoints fall back to clearly flagged placeholder data.

Connection details come from the environment (``SUPABASE_URL`` and
``SUPABASE_SERVICE_ROLE_KEY`` or their ``VITE_``/``NEXT_PUBLIC_`` aliases).
Without them the app still starts; catalog endpoints answer 503 and
``/api/health`` reports the store as unconfigured.
"""

from catalog.app import create_app

app = create_app()


if __name__ == "__main__":  # pragma: no cover
    # Only run uvicorn if this module is executed directly. Hosted
    # deployments start it through their own process manager.
    import uvicorn

    uvicorn.run("catalog_backend:app", host="0.0.0.0", port=8000, reload=True)
