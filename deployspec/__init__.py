"""FastAPI application package for the deployment-specification authoring service.

This package exposes a small FastAPI application factory. It wires only
cross-cutting middleware (request-id and CORS) and mounts the API routers.
Business logic lives in `deployspec/logic/` and route handlers in
`deployspec/routes/`.
"""

from __future__ import annotations

from deployspec.main import create_app

__all__ = ["create_app"]
