from vibe.mycelery.app import celery_app
from vibe.logging import get_logger
from vibe.services.email import EmailService, EmailDeliveryError

logger = get_logger(__name__)


@celery_app.task(bind=True, name="send_email", max_retries=3)
def send_email_task(self, to: str, subject: str, html: str):
    """Sends one email, retrying with exponential backoff on delivery errors"""
    try:
        EmailService().send(to, subject, html)
        return {"sent": True, "email": to}
    except EmailDeliveryError as e:
        logger.error("Email delivery failed", exc_info=True, to=to, retries=self.request.retries)
        # Backoff doubles after each failure
        raise self.retry(exc=e, countdown=2 ** self.request.retries)


def dispatch_email(to: str, subject: str, html: str) -> None:
    """Queues an email; failures to enqueue are logged, never raised"""
    try:
        send_email_task.delay(to, subject, html)
    except Exception:
        logger.error("Failed to queue email", to=to, subject=subject)
