"""
Notifications for new announcements (comunicados).

Emails go through Resend. Web push goes to every stored browser subscription
when VAPID keys are configured; subscriptions the push service reports as
gone (404/410) are removed.
"""

import asyncio
import html
import json
import os
from dataclasses import dataclass
from typing import Callable

import httpx
from pywebpush import WebPushException, webpush

from api.logging import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_FROM = "Versix Condomínio <onboarding@resend.dev>"
DEFAULT_APP_URL = "https://app.versix.com.br"
DEFAULT_VAPID_SUBJECT = "mailto:admin@versix.com.br"

PUSH_URL_PATH = "/comunicados"
PUSH_BODY_CHARS = 100
STALE_SUBSCRIPTION_STATUSES = (404, 410)


def render_announcement_email(full_name: str | None, title: str, content: str, app_url: str) -> str:
    """HTML body of the announcement email. User-provided text is escaped."""
    name = html.escape(full_name or "Morador")
    safe_title = html.escape(title)
    safe_content = html.escape(content)
    return (
        f"<h1>Olá, {name}</h1>"
        "<p>Um novo comunicado foi publicado no mural do condomínio.</p>"
        '<div style="background-color: #f3f4f6; padding: 15px; border-radius: 8px; margin: 20px 0;">'
        f'<h2 style="margin-top:0;">{safe_title}</h2>'
        f'<p style="white-space: pre-line;">{safe_content}</p>'
        "</div>"
        f'<p><a href="{html.escape(app_url)}">Clique aqui para acessar o sistema</a></p>'
    )


async def _send_email(client: httpx.AsyncClient, api_key: str, message: dict, user_id: str | None) -> bool:
    try:
        response = await client.post(
            RESEND_API_URL,
            json=message,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=10.0,
        )
        response.raise_for_status()
        return True
    except Exception as e:
        logger.error(f"Email to user {user_id} failed: {type(e).__name__}: {e}")
        return False


async def notify_announcement(
    announcement: dict,
    users: list[dict],
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Email every user about a new announcement.

    Args:
        announcement: The `comunicados` row (needs `title` and `content`)
        users: Rows with `id`, `email` and `full_name`
        transport: Optional httpx transport (tests)

    Returns:
        Number of emails accepted by Resend. Individual failures are logged
        and don't stop the others.
    """
    api_key = os.environ.get("RESEND_API_KEY")
    if not api_key:
        logger.info("RESEND_API_KEY not configured, skipping emails")
        return 0

    sender = os.environ.get("NOTIFY_FROM_EMAIL", DEFAULT_FROM)
    app_url = os.environ.get("APP_URL", DEFAULT_APP_URL)
    title = announcement.get("title") or ""
    content = announcement.get("content") or ""

    messages = [
        (
            user.get("id"),
            {
                "from": sender,
                "to": [user["email"]],
                "subject": f"Novo Comunicado: {title}",
                "html": render_announcement_email(user.get("full_name"), title, content, app_url),
            },
        )
        for user in users
        if user.get("email")
    ]

    async with httpx.AsyncClient(transport=transport) as client:
        results = await asyncio.gather(*(_send_email(client, api_key, m, user_id) for user_id, m in messages))

    sent = sum(results)
    logger.info(f"Announcement emails sent: {sent}/{len(messages)}")
    return sent


def push_configured() -> bool:
    return bool(os.environ.get("VAPID_PUBLIC_KEY") and os.environ.get("VAPID_PRIVATE_KEY"))


def render_push_payload(announcement: dict) -> str:
    """JSON payload shown by the service worker for an announcement."""
    title = announcement.get("title") or ""
    content = announcement.get("content") or ""
    return json.dumps(
        {
            "title": f"Condomínio: {title}",
            "body": content[:PUSH_BODY_CHARS] + "...",
            "url": PUSH_URL_PATH,
        },
        ensure_ascii=False,
    )


def subscription_info(row: dict) -> dict | None:
    """The browser PushSubscription stored in a `push_subscriptions` row, or None if unusable."""
    info = row.get("subscription")
    if isinstance(info, str):
        try:
            info = json.loads(info)
        except ValueError:
            return None
    if not isinstance(info, dict) or not info.get("endpoint"):
        return None
    return info


@dataclass
class PushResult:
    """Outcome of one push fan-out."""

    sent: int = 0
    removed: int = 0
    failed: int = 0


async def notify_push(
    announcement: dict,
    subscriptions: list[dict],
    remove_subscription: Callable[[str], None],
    sender: Callable[..., object] | None = None,
) -> PushResult:
    """
    Send a web push about a new announcement to every subscription.

    Args:
        announcement: The `comunicados` row (needs `title` and `content`)
        subscriptions: `push_subscriptions` rows with `subscription` and `user_id`
        remove_subscription: Called with the endpoint of a subscription the
            push service reported as gone
        sender: pywebpush-compatible send function (defaults to `webpush`)

    Returns:
        PushResult with sent, removed and failed counts. Nothing is sent
        unless VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY are set.
    """
    if not push_configured():
        logger.info("VAPID keys not configured, skipping push")
        return PushResult()

    sender = sender or webpush
    private_key = os.environ["VAPID_PRIVATE_KEY"]
    subject = os.environ.get("VAPID_SUBJECT", DEFAULT_VAPID_SUBJECT)
    payload = render_push_payload(announcement)

    def send(row: dict) -> str:
        user_id = row.get("user_id")
        info = subscription_info(row)
        if info is None:
            logger.warning(f"Invalid push subscription for user {user_id}")
            return "failed"
        try:
            sender(
                subscription_info=info,
                data=payload,
                vapid_private_key=private_key,
                vapid_claims={"sub": subject},
            )
            return "sent"
        except WebPushException as e:
            status = getattr(e.response, "status_code", None)
            if status not in STALE_SUBSCRIPTION_STATUSES:
                logger.error(f"Push to user {user_id} failed: {e}")
                return "failed"
        except Exception as e:
            logger.error(f"Push to user {user_id} failed: {type(e).__name__}: {e}")
            return "failed"

        try:
            remove_subscription(info["endpoint"])
        except Exception as e:
            logger.error(f"Could not remove expired subscription of user {user_id}: {type(e).__name__}: {e}")
            return "failed"
        logger.info(f"Removed expired push subscription of user {user_id}")
        return "removed"

    outcomes = await asyncio.gather(*(asyncio.to_thread(send, row) for row in subscriptions))

    result = PushResult(
        sent=outcomes.count("sent"),
        removed=outcomes.count("removed"),
        failed=outcomes.count("failed"),
    )
    logger.info(f"Announcement pushes sent: {result.sent}/{len(subscriptions)} ({result.removed} expired removed)")
    return result
