"""In-app notifications plus e-mail over SMTP, with a logged simulation fallback."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import settings
from arena.models.notification import Notification, NotificationKind
from arena.realtime import INSERT, change_feed

logger = logging.getLogger(__name__)

HTML_TEMPLATE_BASE = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: -apple-system, sans-serif; background-color: #f8f9fa; color: #333; margin: 0; }
        .container { max-width: 600px; margin: 40px auto; background: #ffffff; border-radius: 12px; }
        .header { background: #4f46e5; padding: 30px 40px; text-align: center; color: #ffffff; }
        .content { padding: 40px; line-height: 1.6; }
        .btn { display: inline-block; background: #4f46e5; color: #ffffff; text-decoration: none;
               padding: 14px 28px; border-radius: 8px; font-weight: 600; }
        .footer { background: #f1f3f5; padding: 20px; text-align: center; color: #6c757d; font-size: 13px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{app_name}</h1></div>
        <div class="content">{body}</div>
        <div class="footer">
            <p>You received this email because you joined a competition on {app_name}.</p>
        </div>
    </div>
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════
#  In-app notifications
# ═══════════════════════════════════════════════════════════════

async def notify(
    db: AsyncSession,
    user_id: int,
    kind: NotificationKind,
    message: str,
    team_id: Optional[int] = None,
    link: Optional[str] = None,
) -> Notification:
    """Queue an inbox entry in the caller's transaction. Publish it after commit."""
    notif = Notification(user_id=user_id, kind=kind, team_id=team_id, message=message, link=link)
    db.add(notif)
    await db.flush()
    return notif


def notification_payload(notif: Notification) -> Dict[str, Any]:
    return {
        "id": notif.id,
        "user_id": notif.user_id,
        "kind": notif.kind.value,
        "team_id": notif.team_id,
        "message": notif.message,
        "link": notif.link,
    }


async def publish_notification(notif: Notification) -> None:
    await change_feed.publish("notifications", INSERT, new=notification_payload(notif))


# ═══════════════════════════════════════════════════════════════
#  E-mail
# ═══════════════════════════════════════════════════════════════

def _render(body: str) -> str:
    return HTML_TEMPLATE_BASE.replace("{app_name}", settings.APP_NAME).replace("{body}", body)


def _send_email_sync(recipient_email: str, subject: str, html_body: str):
    """Send the e-mail, or log it when SMTP credentials are not configured."""
    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.info("Simulated email to %s: %s", recipient_email, subject)
        logger.debug("Simulated email body:\n%s", html_body)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.APP_NAME} <{settings.SMTP_USERNAME}>"
    msg["To"] = recipient_email
    msg.attach(MIMEText(html_body, "html"))

    try:
        server = smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT)
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)
        server.quit()
        logger.info("Email sent to %s", recipient_email)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", recipient_email, e)


async def send_invitation_email(recipient_email: str, team_name: str, captain_name: str):
    """Tell a candidate a captain invited them."""
    subject = f"You've been invited to join team {team_name}!"
    body = f"""
    <h2>Hello,</h2>
    <p><strong>{captain_name}</strong> needs your skills and invited you to join
    <strong>{team_name}</strong>.</p>
    <p><a href="{settings.PUBLIC_BASE_URL}/invitations" class="btn">View Invitation</a></p>
    """
    # SMTP is blocking; keep it off the event loop
    await asyncio.to_thread(_send_email_sync, recipient_email, subject, _render(body))


async def send_join_request_email(recipient_email: str, team_name: str, requester_name: str):
    """Tell a captain someone asked to join their team."""
    subject = f"New join request for team {team_name}"
    body = f"""
    <h2>Hello,</h2>
    <p><strong>{requester_name}</strong> has requested to join your team
    <strong>{team_name}</strong>.</p>
    <p><a href="{settings.PUBLIC_BASE_URL}/join-requests" class="btn">Review Request</a></p>
    """
    await asyncio.to_thread(_send_email_sync, recipient_email, subject, _render(body))
