"""
Services package.
Contains business logic on top of the JSON document store.
"""
from gallery_api.services.auth import AuthService
from gallery_api.services.sessions import SessionService
from gallery_api.services.gallery import GalleryService
from gallery_api.services.trash import TrashService
from gallery_api.services.private_folder import PrivateFolderService
from gallery_api.services.workflows import MediaWorkflows
from gallery_api.services.album import AlbumService
from gallery_api.services.favorites import FavoritesService
from gallery_api.services.offline import OfflineService
from gallery_api.services.share import ShareService
from gallery_api.services.preferences import PreferencesService
from gallery_api.services.account import AccountTransferService

__all__ = [
    "AuthService",
    "SessionService",
    "GalleryService",
    "TrashService",
    "PrivateFolderService",
    "MediaWorkflows",
    "AlbumService",
    "FavoritesService",
    "OfflineService",
    "ShareService",
    "PreferencesService",
    "AccountTransferService",
]
