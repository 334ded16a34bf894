from cubedraft.api.cubes import router as cubes_router
from cubedraft.api.drafts import router as drafts_router
from cubedraft.api.featured import router as featured_router
from cubedraft.api.health import router as health_router

__all__ = [
    "cubes_router",
    "drafts_router",
    "featured_router",
    "health_router",
]
