from prometheus_fastapi_instrumentator import Instrumentator

from . import create_app
from .core.config import settings
from .core.logging import setup_logging

setup_logging(settings.LOG_LEVEL)
app = create_app(settings)
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}
