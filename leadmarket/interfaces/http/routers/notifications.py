"""In-app notifications."""
from fastapi import APIRouter, Depends, Query, status

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_account
from leadmarket.interfaces.http.deps import get_notification_service
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.notifications import NotificationService
from leadmarket.schemas import MarkAllReadResponse, NotificationListResponse, NotificationResponse

router = APIRouter()


@router.get("", response_model=NotificationListResponse, summary="Latest notifications")
async def list_notifications(
    limit: int = Query(default=20, ge=1, le=100),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    account: AccountDomain = Depends(get_current_account),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    items = await notifications.list_for_user(account.id, limit, unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(item) for item in items],
        unread=sum(1 for item in items if not item.read),
    )


@router.patch("/read-all", response_model=MarkAllReadResponse, summary="Mark every notification as read")
async def mark_all_read(
    account: AccountDomain = Depends(get_current_account),
    notifications: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await notifications.mark_all_read(account.id))


@router.patch("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT, summary="Mark one notification as read")
async def mark_read(
    notification_id: str,
    account: AccountDomain = Depends(get_current_account),
    notifications: NotificationService = Depends(get_notification_service),
) -> None:
    try:
        await notifications.mark_read(account.id, notification_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
