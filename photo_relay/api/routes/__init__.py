from photo_relay.api.routes.health import router as health_router
from photo_relay.api.routes.upload import router as upload_router

__all__ = ["health_router", "upload_router"]
