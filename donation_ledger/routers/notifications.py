from fastapi import APIRouter, Depends

from donation_ledger.core.exceptions import NotFoundError
from donation_ledger.deps import get_current_actor
from donation_ledger.models.user import Actor
from donation_ledger.services.notifications import InMemoryNotifier
from donation_ledger.services.store import DonationStore, get_store

router = APIRouter()


def _inbox(store: DonationStore) -> InMemoryNotifier | None:
    """The inbox, when delivery is kept in process; None when an external notifier owns it."""
    notifier = store.notifier
    return notifier if isinstance(notifier, InMemoryNotifier) else None


@router.get("")
async def list_notifications(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    """Caller's notifications, newest first, with the unread count."""
    inbox = _inbox(store)
    items = inbox.inbox(actor.user_id) if inbox else []
    return {
        "notifications": [n.model_dump(mode="json") for n in items],
        "unread": inbox.unread_count(actor.user_id) if inbox else 0,
    }


@router.post("/read")
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    inbox = _inbox(store)
    return {"updated": inbox.mark_all_read(actor.user_id) if inbox else 0, "unread": 0}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    inbox = _inbox(store)
    if inbox is None:
        raise NotFoundError("Notification not found", details={"notification_id": notification_id})
    notification = inbox.mark_read(actor.user_id, notification_id)
    return {"notification": notification.model_dump(mode="json"), "unread": inbox.unread_count(actor.user_id)}


@router.delete("")
async def clear_notifications(
    actor: Actor = Depends(get_current_actor),
    store: DonationStore = Depends(get_store),
):
    inbox = _inbox(store)
    return {"removed": inbox.clear(actor.user_id) if inbox else 0}
