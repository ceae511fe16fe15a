"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from datetime import datetime

import anyio
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationDispatchError,
    NotificationDispatcher,
    NotificationFilter,
    NotificationRequest,
    delete_notification,
    get_notification_stats,
    get_or_create_preferences,
    list_notifications,
    list_unread_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    mark_notifications_as_read,
    send_test_notification,
    update_preferences,
)
from app.domain.entities import (
    Notification,
    NotificationAction,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    User,
)
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.notifications import (
    RealtimeEventPublisher,
    notification_manager,
    serialize_notification,
)
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_dispatcher,
    get_realtime_events,
    require_admin,
    resolve_current_user,
)
from app.interfaces.api.schemas import (
    NotificationListResponse,
    NotificationMarkReadRequest,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationStatsRead,
    NotificationTestRequest,
    SuccessResponse,
)
from app.utils import format_time_of_day

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

WS_POLICY_VIOLATION = 1008
WS_INTERNAL_ERROR = 1011


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        type=notification.type,
        category=notification.category,
        title=notification.title,
        message=notification.message,
        priority=notification.priority,
        data=notification.data,
        actions=[action.to_dict() for action in notification.actions],
        read=notification.read,
        read_at=notification.read_at,
        group_id=notification.group_id,
        expires_at=notification.expires_at,
        created_at=notification.created_at,
    )


def _preferences_to_schema(preferences: NotificationPreferences) -> NotificationPreferencesRead:
    return NotificationPreferencesRead(
        email=preferences.email.to_dict(),
        sms=preferences.sms.to_dict(),
        in_app=preferences.in_app.to_dict(),
        quiet_hours_start=format_time_of_day(preferences.quiet_hours_start),
        quiet_hours_end=format_time_of_day(preferences.quiet_hours_end),
        timezone=preferences.timezone,
    )


@router.get("/", response_model=NotificationListResponse)
def list_notifications_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    unread_only: bool = False,
    types: list[NotificationType] | None = Query(None, alias="type"),
    priorities: list[NotificationPriority] | None = Query(None, alias="priority"),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationListResponse:
    """Return a page of the authenticated user's notifications, newest first."""

    result = list_notifications(
        db,
        current_user.id,
        NotificationFilter(
            page=page,
            limit=limit,
            unread_only=unread_only,
            types=types or (),
            priorities=priorities or (),
            start_date=start_date,
            end_date=end_date,
        ),
    )
    return NotificationListResponse(
        items=[_notification_to_schema(item) for item in result.items],
        total=result.total,
        unread_count=result.unread_count,
        page=result.page,
        limit=result.limit,
    )


@router.get("/stats", response_model=NotificationStatsRead)
def get_stats_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationStatsRead:
    stats = get_notification_stats(db, current_user.id)
    return NotificationStatsRead(
        total=stats.total,
        unread=stats.unread,
        by_type=stats.by_type,
        by_priority=stats.by_priority,
    )


@router.get("/preferences", response_model=NotificationPreferencesRead)
def get_preferences_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPreferencesRead:
    return _preferences_to_schema(get_or_create_preferences(db, current_user.id))


@router.put("/preferences", response_model=NotificationPreferencesRead)
def update_preferences_endpoint(
    payload: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPreferencesRead:
    try:
        preferences = update_preferences(db, current_user.id, payload.changes())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _preferences_to_schema(preferences)


@router.put("/read", response_model=SuccessResponse)
def mark_many_as_read_endpoint(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    events: RealtimeEventPublisher = Depends(get_realtime_events),
) -> SuccessResponse:
    mark_notifications_as_read(
        db,
        user_id=current_user.id,
        notification_ids=payload.unique_ids(),
        events=events,
    )
    return SuccessResponse()


@router.put("/read-all", response_model=SuccessResponse)
def mark_all_as_read_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    events: RealtimeEventPublisher = Depends(get_realtime_events),
) -> SuccessResponse:
    mark_all_notifications_as_read(db, user_id=current_user.id, events=events)
    return SuccessResponse()


@router.put("/{notification_id}/read", response_model=SuccessResponse)
def mark_as_read_endpoint(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    events: RealtimeEventPublisher = Depends(get_realtime_events),
) -> SuccessResponse:
    try:
        mark_notification_as_read(
            db,
            user_id=current_user.id,
            notification_id=notification_id,
            events=events,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SuccessResponse()


@router.delete("/{notification_id}", response_model=SuccessResponse)
def delete_notification_endpoint(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    events: RealtimeEventPublisher = Depends(get_realtime_events),
) -> SuccessResponse:
    deleted = delete_notification(
        db,
        user_id=current_user.id,
        notification_id=notification_id,
        events=events,
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return SuccessResponse()


@router.post("/send", response_model=NotificationSendResponse)
async def send_notification_endpoint(
    payload: NotificationSendRequest,
    _: User = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationSendResponse:
    """Fan a notification out to users; restricted to administrators."""

    request = NotificationRequest(
        type=payload.type,
        title=payload.title,
        message=payload.message,
        user_id=payload.user_id,
        user_ids=payload.user_ids,
        role_ids=payload.role_ids,
        priority=payload.priority,
        data=payload.data,
        actions=[NotificationAction(**action.model_dump()) for action in payload.actions],
        expires_at=payload.expires_at,
        group_id=payload.group_id,
    )
    try:
        sent = await dispatcher.send_notification(request)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotificationDispatchError as exc:
        logger.error("Notification dispatch failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification could not be sent",
        ) from exc
    return NotificationSendResponse(sent=sent)


@router.post("/test", response_model=SuccessResponse)
async def send_test_endpoint(
    payload: NotificationTestRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> SuccessResponse:
    try:
        await send_test_notification(
            dispatcher, db, user_id=current_user.id, channel=payload.channel
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SuccessResponse()


def _extract_websocket_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _authenticate_websocket(token: str) -> tuple[User, list[Notification]]:
    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        return user, list_unread_notifications(session, user.id)
    finally:
        session.close()


def _acknowledge(user_id: int, notification_ids: list[int]) -> None:
    session = SessionLocal()
    try:
        mark_notifications_as_read(
            session,
            user_id=user_id,
            notification_ids=notification_ids,
            events=get_realtime_events(),
        )
    finally:
        session.close()


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = _extract_websocket_token(websocket)
    if not token:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    try:
        user, pending = await anyio.to_thread.run_sync(_authenticate_websocket, token)
    except HTTPException:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return
    except Exception:
        logger.exception("Unexpected error authenticating notification websocket")
        await websocket.close(code=WS_INTERNAL_ERROR)
        return

    connection_id = await notification_manager.connect(user.id, websocket)
    try:
        await websocket.send_json(
            {"type": "init", "data": [serialize_notification(item) for item in pending]}
        )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    valid_ids = [item for item in ids if isinstance(item, int)]
                    if valid_ids:
                        await anyio.to_thread.run_sync(_acknowledge, user.id, valid_ids)
    except WebSocketDisconnect:
        pass
    finally:
        notification_manager.disconnect(user.id, connection_id)
