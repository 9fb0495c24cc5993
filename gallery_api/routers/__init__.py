"""
API routers package.
"""
from gallery_api.routers.auth import router as auth_router
from gallery_api.routers.gallery import router as gallery_router
from gallery_api.routers.trash import router as trash_router
from gallery_api.routers.private import router as private_router
from gallery_api.routers.albums import router as albums_router
from gallery_api.routers.favorites import router as favorites_router
from gallery_api.routers.share import router as share_router
from gallery_api.routers.settings import router as settings_router

__all__ = [
    "auth_router",
    "gallery_router",
    "trash_router",
    "private_router",
    "albums_router",
    "favorites_router",
    "share_router",
    "settings_router",
]
