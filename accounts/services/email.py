"""Activation mail delivery over SMTP."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from jinja2 import Environment, PackageLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from accounts.config import Settings
from accounts.exceptions import MailTransportError

logger = logging.getLogger("accounts")

templates = Environment(
    loader=PackageLoader("accounts", "templates"),
    autoescape=select_autoescape(["html"]),
)


class MailTransport:
    """Sends account mails through the configured SMTP server."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.sender = settings.MAIL_FROM
        self.activation_url = settings.ACTIVATION_URL

    def build_activation_message(self, email: str, token: str) -> MIMEMultipart:
        separator = "&" if "?" in self.activation_url else "?"
        link = f"{self.activation_url}{separator}{urlencode({'token': token})}"
        html = templates.get_template("activation_email.html").render(activation_link=link)

        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = email
        msg["Subject"] = "Account Activation"
        msg.attach(MIMEText(f"Activate your account: {link}", "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    async def send_account_activation(self, email: str, token: str) -> None:
        """Send the activation mail. Raises MailTransportError if the server rejects it."""
        msg = self.build_activation_message(email, token)
        await run_in_threadpool(self._deliver, msg)
        logger.info("Activation mail sent to %s", email)

    def _deliver(self, msg: MIMEMultipart) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(str(e)) from e
