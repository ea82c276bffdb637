import os
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger("email_service")

current_dir = os.path.dirname(os.path.abspath(__file__))
template_dir = os.path.join(current_dir, "../../features/verification/template")

if not os.path.exists(template_dir):
    template_dir = os.path.join(os.getcwd(), "app/features/verification/template")

env = Environment(
    loader=FileSystemLoader(template_dir),
    autoescape=select_autoescape(["html"]),
)


class EmailDispatchError(Exception):
    """Raised when an email could not be handed to the relay or the SMTP server."""


def render_template(template_name: str, **context) -> str:
    return env.get_template(template_name).render(**context)


def send_email(to_email: str, subject: str, body: str):
    """
    Send email via HTTP relay service.
    Falls back to direct SMTP if the relay is not configured or fails.
    Raises EmailDispatchError when no transport accepted the message.
    """
    if settings.EMAIL_RELAY_URL and settings.EMAIL_RELAY_API_KEY:
        try:
            send_email_via_relay(to_email, subject, body)
            return
        except EmailDispatchError as e:
            logger.error(f"Email relay failed: {str(e)}")
            logger.info("Attempting direct SMTP as fallback...")
            send_email_direct_smtp(to_email, subject, body)
    else:
        logger.warning("Email relay not configured, attempting direct SMTP")
        send_email_direct_smtp(to_email, subject, body)


def send_email_via_relay(to_email: str, subject: str, body: str):
    """Send email via HTTP relay service"""
    payload = {
        "to_email": to_email,
        "subject": subject,
        "body": body,
        "from_address": settings.MAIL_FROM_ADDRESS
    }

    headers = {
        "X-API-Key": settings.EMAIL_RELAY_API_KEY,
        "Content-Type": "application/json"
    }

    try:
        response = requests.post(
            settings.EMAIL_RELAY_URL,
            json=payload,
            headers=headers,
            timeout=settings.EMAIL_RELAY_TIMEOUT
        )
        response.raise_for_status()

        result = response.json()
        logger.info(f"Email sent via relay to {to_email}: {result.get('message')}")

    except requests.exceptions.Timeout as e:
        logger.error(f"Email relay timeout for {to_email}")
        raise EmailDispatchError("Email relay service timeout") from e

    except requests.exceptions.RequestException as e:
        logger.error(f"Email relay request failed: {str(e)}")
        if e.response is not None:
            logger.error(f"Response status: {e.response.status_code}")
            logger.error(f"Response body: {e.response.text}")
        raise EmailDispatchError(f"Email relay service error: {str(e)}") from e

    except ValueError as e:
        # relay answered 2xx with a body that is not JSON
        logger.error(f"Email relay returned an unreadable response for {to_email}")
        raise EmailDispatchError("Email relay returned an invalid response") from e


def send_email_direct_smtp(to_email: str, subject: str, body: str):
    """Send an HTML email over SMTP (SSL on port 465, optional STARTTLS otherwise)."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM_ADDRESS}>"
    msg["To"] = to_email

    msg.attach(MIMEText(body, "html"))

    try:
        port = settings.MAIL_PORT

        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(
                settings.MAIL_HOST, port, context=context, timeout=settings.MAIL_TIMEOUT
            ) as server:
                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())
        else:
            with smtplib.SMTP(settings.MAIL_HOST, port, timeout=settings.MAIL_TIMEOUT) as server:
                server.ehlo()

                if str(settings.MAIL_ENCRYPTION).upper() in ["TLS", "TRUE"]:
                    server.starttls()
                    server.ehlo()

                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())

        logger.info(f"Email sent via SMTP to {to_email}")

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"CRITICAL EMAIL ERROR: {str(e)}")
        raise EmailDispatchError(f"SMTP delivery failed: {str(e)}") from e
