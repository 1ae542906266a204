import re
from urllib.parse import parse_qs, urlparse

from apps.common.mail import MailProvider


URL_RE = re.compile(r"(?P<url>https?://\S+)")
CODE_RE = re.compile(r"Here's your verification code: (?P<code>\w+)")


class RecordingMailProvider(MailProvider):
    def __init__(self):
        self.outbox = []

    def send(self, msg):
        self.outbox.append(msg)

    def last_for(self, to):
        for msg in reversed(self.outbox):
            if msg.to == to:
                return msg
        return None


def extract_code(text):
    m = CODE_RE.search(text)
    return m.group("code") if m else None


def extract_link(text):
    m = URL_RE.search(text)
    if not m:
        return None, {}
    url = m.group("url")
    qs = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}
    return url, qs
