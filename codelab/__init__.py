"""Extension host API service.
"""

import contextlib
import fastapi


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    from .business.extension import ExtensionManager
    from .engine import create_tables
    create_tables()
    ExtensionManager.new().start()
    yield
    ExtensionManager.new().close_all()


api_app = fastapi.FastAPI(title="CodeLab", lifespan=lifespan)

@api_app.get("/heartbeat")
def heartbeat():
    """Check if the API is running."""
    return {"status": "ok"}

from .business.extension import EXTENSION_ROUTER  # noqa: E402
api_app.include_router(EXTENSION_ROUTER, tags=["extensions"])
