"""HTTP layer — FastAPI routes over the core services.

Rules
-----
* No business logic: handlers translate JSON to service calls and back.
* :func:`~reelwall.api.app.create_app` owns the HTTP error boundary.
"""

from reelwall.api.app import create_app

__all__: list[str] = ["create_app"]
