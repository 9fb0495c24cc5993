"""
Settings router: preferences, sessions, offline markers, storage usage
and account export/import.
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from gallery_api.dependencies.auth import get_current_session_id, get_current_user
from gallery_api.models.media import MediaItem
from gallery_api.models.user import User, UserPreferences
from gallery_api.schemas.account import ImportResult
from gallery_api.schemas.settings import (
    ItemIdList,
    LanguageUpdate,
    PreferencesUpdate,
    SessionResponse,
    SessionsRemoved,
    StorageUsage,
    ToggleResult,
)
from gallery_api.services.account import AccountTransferService
from gallery_api.services.offline import OfflineService
from gallery_api.services.preferences import PreferencesService
from gallery_api.services.sessions import SessionService
from gallery_api.store import JsonDocumentStore, get_store

router = APIRouter(prefix="/settings", tags=["Settings"])

EXPORT_FILENAME = "gallery-export.json"


# ============== Preferences ==============

@router.get(
    "/preferences",
    response_model=UserPreferences,
    summary="Get preferences",
)
async def get_preferences(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> UserPreferences:
    """Stored preferences merged over the defaults."""
    return await PreferencesService(store).get(current_user.id)


@router.patch(
    "/preferences",
    response_model=UserPreferences,
    summary="Update preferences",
)
async def update_preferences(
    body: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> UserPreferences:
    """
    Update some preferences. Omitted keys keep their stored value.
    """
    changes = body.model_dump(exclude_unset=True)
    return await PreferencesService(store).update(current_user.id, changes)


@router.put(
    "/language",
    response_model=UserPreferences,
    summary="Set the interface language",
)
async def update_language(
    body: LanguageUpdate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> UserPreferences:
    return await PreferencesService(store).update_language(current_user.id, body.language)


# ============== Sessions ==============

@router.get(
    "/sessions",
    response_model=List[SessionResponse],
    summary="List active sessions",
)
async def list_sessions(
    current_user: User = Depends(get_current_user),
    session_id: str = Depends(get_current_session_id),
    store: JsonDocumentStore = Depends(get_store),
) -> List[SessionResponse]:
    """Sessions of the current user, most recent login first."""
    sessions = await SessionService(store).list_for_user(current_user.id)
    return [
        SessionResponse(
            session_id=s.session_id,
            device_info=s.device_info,
            ip_address=s.ip_address,
            login_timestamp=s.login_timestamp,
            last_active_timestamp=s.last_active_timestamp,
            is_current=s.session_id == session_id,
        )
        for s in sessions
    ]


@router.post(
    "/sessions/revoke-others",
    response_model=SessionsRemoved,
    summary="Sign out all other sessions",
)
async def remove_other_sessions(
    current_user: User = Depends(get_current_user),
    session_id: str = Depends(get_current_session_id),
    store: JsonDocumentStore = Depends(get_store),
) -> SessionsRemoved:
    removed = await SessionService(store).remove_others(current_user.id, session_id)
    return SessionsRemoved(removed_count=removed)


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out one session",
)
async def remove_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await SessionService(store).remove(current_user.id, session_id)


# ============== Offline ==============

@router.get(
    "/offline",
    response_model=List[MediaItem],
    summary="List items marked for offline use",
)
async def list_offline(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[MediaItem]:
    return await OfflineService(store).items(current_user.id)


@router.get(
    "/offline/ids",
    response_model=ItemIdList,
    summary="List offline item ids",
)
async def offline_ids(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ItemIdList:
    return ItemIdList(item_ids=await OfflineService(store).ids(current_user.id))


@router.post(
    "/offline/{item_id}/toggle",
    response_model=ToggleResult,
    summary="Toggle the offline marker of an item",
)
async def toggle_offline(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ToggleResult:
    active = await OfflineService(store).toggle(current_user.id, item_id)
    return ToggleResult(item_id=item_id, active=active)


@router.delete(
    "/offline",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear all offline markers",
)
async def clear_offline(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await OfflineService(store).clear_all(current_user.id)


# ============== Storage ==============

@router.get(
    "/storage",
    response_model=StorageUsage,
    summary="Disk space used by uploads",
)
async def storage_usage(
    current_user: User = Depends(get_current_user),
) -> StorageUsage:
    size, formatted = PreferencesService.storage_usage()
    return StorageUsage(size_bytes=size, formatted=formatted)


# ============== Export / import ==============

@router.get(
    "/export",
    summary="Export account data",
)
async def export_account(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> JSONResponse:
    """
    Download everything you own as one JSON document keyed by data file
    name. Password hashes are not included.
    """
    data = await AccountTransferService(store).export(current_user.id)
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post(
    "/import",
    response_model=ImportResult,
    summary="Import account data",
)
async def import_account(
    data: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    session_id: str = Depends(get_current_session_id),
    store: JsonDocumentStore = Depends(get_store),
) -> ImportResult:
    """
    Replace your data with a previous export.

    Every file is validated first; if one is invalid nothing is written and
    the response lists the error per file. Your login credentials and the
    current session are kept.
    """
    imported = await AccountTransferService(store).import_data(
        data, current_user.id, current_session_id=session_id
    )
    return ImportResult(imported_files=imported)
