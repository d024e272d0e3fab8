"""Notification router - inbox endpoints and the live insert feed"""

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    WebSocketException,
    status,
)
from sqlalchemy.orm import Session

from ...auth import account_from_token, get_current_account
from ...database import SessionLocal, get_db
from ...models import Account
from .bus import notification_bus
from .schemas import NotificationFeed, NotificationResponse
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


async def get_live_account(token: str = Query(...)) -> Account:
    """
    Browsers cannot set headers on WebSocket upgrades, so the ID token rides in the query.

    The lookup uses its own session, closed before the feed starts, so an open
    socket holds no pooled connection.
    """
    with SessionLocal() as db:
        try:
            return await account_from_token(token, db)
        except HTTPException as e:
            raise WebSocketException(
                code=status.WS_1008_POLICY_VIOLATION, reason=str(e.detail)
            ) from e


@router.get("", response_model=NotificationFeed)
async def get_notifications(
    current_account: Account = Depends(get_current_account),
    service: NotificationService = Depends(get_notification_service),
):
    """Get the current account's notifications, newest first, split into unseen and seen"""
    return service.feed_for(current_account)


@router.post("/{notification_id}/seen", response_model=NotificationResponse)
async def mark_notification_seen(
    notification_id: str,
    current_account: Account = Depends(get_current_account),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark a notification as seen (no-op when it already is)"""
    return service.mark_seen(current_account, notification_id)


@router.websocket("/live")
async def live_notifications(websocket: WebSocket, account: Account = Depends(get_live_account)):
    """Push each new notification for the connected account until the client disconnects"""
    # Pushes committed during the handshake wait in the queue until attach()
    subscription = notification_bus.subscribe(account.id)
    try:
        await websocket.accept()
        subscription.attach(websocket.send_json)
        logger.info(f"📡 Live notification feed opened for {account.id}")
        while True:
            # Client messages are ignored; receiving detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"📴 Live notification feed closed for {account.id}")
    finally:
        subscription.close()
