"""Outbound e-mail for balance alerts."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from leadmarket.core.config import MailSettings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "web" / "templates"


class LowBalanceMailer(Protocol):
    async def send_low_balance_alert(self, email: str, name: str, balance: int) -> None:
        ...


class SmtpMailer:
    """Sends templated HTML mail through a plain SMTP relay."""

    def __init__(self, settings: MailSettings) -> None:
        self.settings = settings
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render_low_balance(self, name: str, balance: int) -> tuple[str, str]:
        subject = (
            "LeadCoin Balance: Zero Coins Remaining"
            if balance == 0
            else "LeadCoin Balance: Low Balance Alert"
        )
        template = self._env.get_template("email/low_balance.html")
        body = template.render(
            name=name or "there",
            balance=balance,
            purchase_url=f"{self.settings.app_url.rstrip('/')}/user/subscriptions?tab=coins",
        )
        return subject, body

    async def send_low_balance_alert(self, email: str, name: str, balance: int) -> None:
        subject, body = self.render_low_balance(name, balance)
        if not self.settings.enabled or not self.settings.host:
            logger.info("Mail disabled, skipping low balance alert to %s (%d coins)", email, balance)
            return
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f"{self.settings.from_name} <{self.settings.from_email}>"
        message["To"] = email
        message.set_content(f"Your LeadCoin balance is {balance}.")
        message.add_alternative(body, subtype="html")
        await asyncio.to_thread(self._deliver, message)
        logger.info("Low balance alert sent to %s", email)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.host, self.settings.port, timeout=10) as smtp:
            if self.settings.use_tls:
                smtp.starttls()
            if self.settings.username:
                smtp.login(self.settings.username, self.settings.password)
            smtp.send_message(message)


__all__ = ["LowBalanceMailer", "SmtpMailer", "TEMPLATE_DIR"]
