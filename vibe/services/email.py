"""
Outbound email through the Resend API.

Without RESEND_API_KEY the message is only logged, which is what local
development and the test suite rely on.
"""
from html import escape

import resend
from resend.exceptions import ResendError

from vibe.core.config import settings
from vibe.logging import get_logger

logger = get_logger(__name__)


class EmailDeliveryError(Exception):
    pass


class EmailService:
    def __init__(self, api_key: str = None, sender: str = None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.api_key:
            logger.info("Email not sent (RESEND_API_KEY missing)", to=to, subject=subject)
            return True

        resend.api_key = self.api_key
        params = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        try:
            response = resend.Emails.send(params)
        except ResendError as e:
            raise EmailDeliveryError(f"Failed to send email to {to}: {e}") from e

        logger.info("Email sent", to=to, subject=subject, message_id=response.get("id"))
        return True


def team_invite_email(team_name: str, inviter_name: str, role: str) -> tuple:
    """Subject and HTML body for a team invitation"""
    subject = f"You've been invited to join {team_name}"
    html = f"""
    <html>
        <body>
            <h2>Team invitation</h2>
            <p><strong>{escape(inviter_name)}</strong> invited you to join
            <strong>{escape(team_name)}</strong> as {escape(role.lower())}.</p>
            <p><a href="{settings.APP_URL}/invites">View invitation</a></p>
            <p>This invitation expires in {settings.INVITE_EXPIRE_DAYS} days.</p>
            <hr>
            <p><small>{settings.APP_NAME}</small></p>
        </body>
    </html>
    """
    return subject, html


def issue_assigned_email(issue_title: str, project_name: str, assigner_name: str, issue_url: str) -> tuple:
    subject = f"You've been assigned to: {issue_title}"
    html = f"""
    <html>
        <body>
            <h2>New assignment</h2>
            <p><strong>{escape(assigner_name)}</strong> assigned you to
            <strong>{escape(issue_title)}</strong> in {escape(project_name)}.</p>
            <p><a href="{issue_url}">Open issue</a></p>
            <hr>
            <p><small>{settings.APP_NAME}</small></p>
        </body>
    </html>
    """
    return subject, html
