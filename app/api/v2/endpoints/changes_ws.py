import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_db, get_optional_user_from_websocket
from app.notifications.change_feed import change_feed

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws/changes")
async def changes_ws(websocket: WebSocket, db: Session = Depends(get_db)):
    # Anonymous sockets are welcome; a bad token is not.
    try:
        current_user = get_optional_user_from_websocket(websocket, db)
    except HTTPException as exc:
        logger.warning("Change feed socket refused: %s", exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = current_user.id if current_user else None
    # The session is not needed while the socket stays open.
    db.close()

    await change_feed.connect(websocket, user_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        change_feed.disconnect(websocket, user_id)
