"""Credential emails (welcome and password reset) sent over SMTP.

Bodies are HTML rendered from Jinja2 templates in ``templates/email``. The
sender is exposed through ``get_email_service`` so FastAPI routes can depend
on it and tests can swap in an in-memory outbox.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import AppSettings, settings

logger = logging.getLogger("paycheck.email")


class EmailDeliveryError(RuntimeError):
    """Raised when a message could not be handed to the SMTP server."""


@lru_cache(maxsize=1)
def get_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(settings.TEMPLATES_DIR / "email")),
        autoescape=select_autoescape(["html"]),
    )


def render_email(template: str, **context: object) -> str:
    return get_template_env().get_template(template).render(app_name=settings.APP_NAME, **context)


class EmailService:
    def __init__(self, config: AppSettings | None = None) -> None:
        self.config = config or settings

    def _build(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.email_sender
        msg["To"] = to
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, html: str) -> None:
        if not self.config.email_configured:
            raise EmailDeliveryError("SMTP credentials are not configured")
        msg = self._build(to, subject, html)
        cfg = self.config
        try:
            if cfg.EMAIL_USE_SSL:
                with smtplib.SMTP_SSL(cfg.EMAIL_HOST, cfg.EMAIL_PORT, timeout=cfg.EMAIL_TIMEOUT) as server:
                    server.login(cfg.EMAIL_USER, cfg.EMAIL_PASS)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(cfg.EMAIL_HOST, cfg.EMAIL_PORT, timeout=cfg.EMAIL_TIMEOUT) as server:
                    server.starttls()
                    server.login(cfg.EMAIL_USER, cfg.EMAIL_PASS)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(str(exc)) from exc
        logger.info("email.sent", extra={"extra_data": {"to": to, "subject": subject}})

    def send_welcome_email(self, email: str, name: str) -> None:
        html = render_email("welcome.html", name=name)
        self.send(email, f"Welcome to {settings.APP_NAME}!", html)

    def send_password_reset_email(self, email: str, name: str, new_password: str) -> None:
        html = render_email("password_reset.html", name=name, new_password=new_password)
        self.send(email, f"{settings.APP_NAME} - Your New Password", html)


def get_email_service() -> EmailService:
    return EmailService()
