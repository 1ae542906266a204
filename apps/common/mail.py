import json
import logging
from dataclasses import dataclass

import requests
from django.conf import settings


logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    pass


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str
    from_email: str = ""


class MailProvider:
    def send(self, msg: MailMessage):  # pragma: no cover - base
        raise NotImplementedError


class ConsoleMailProvider(MailProvider):
    def send(self, msg: MailMessage):
        # Body carries the link and the code; only meant for dev.
        logger.info("[DEV MAIL] From: %s To: %s Subject: %s Body: %s", msg.from_email, msg.to, msg.subject, msg.body)


class SendGridMailProvider(MailProvider):
    url = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self, api_key: str, timeout: int = 20):
        self.api_key = api_key
        self.timeout = timeout

    def send(self, msg: MailMessage):
        if not (self.api_key and msg.from_email):
            raise MailDeliveryError("SendGrid not configured")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        body = {
            "personalizations": [{"to": [{"email": msg.to}]}],
            "from": {"email": msg.from_email},
            "subject": msg.subject or "",
            "content": [{"type": "text/plain", "value": msg.body or ""}],
        }
        try:
            resp = requests.post(self.url, headers=headers, data=json.dumps(body), timeout=self.timeout)
        except requests.RequestException as e:
            raise MailDeliveryError(f"SendGrid unreachable: {e}") from e
        if resp.status_code >= 400:
            raise MailDeliveryError(f"SendGrid {resp.status_code}: {resp.text[:200]}")
        return resp.headers.get("X-Message-Id")


def get_mail_provider() -> MailProvider:
    name = getattr(settings, "MAIL_PROVIDER", "console")
    if name == "sendgrid":
        return SendGridMailProvider(getattr(settings, "SENDGRID_API_KEY", ""))
    return ConsoleMailProvider()
