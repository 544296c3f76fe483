import logging
import sys
from typing import Optional

import httpx

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class NtfyHandler(logging.Handler):
    """Push log records to an ntfy.sh topic."""

    def __init__(self, topic: str, priority: str = 'default', tags: Optional[list[str]] = None,
                 username=None, password=None, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        super().__init__()
        self.topic = topic
        self.url = f"https://ntfy.sh/{self.topic}"
        self.priority = priority  # Can be 'min', 'low', 'default', 'high', 'max'
        self.tags = tags or []
        self.auth = (username, password) if username and password else None
        self.client = client or httpx.Client(timeout=timeout)

    def emit(self, record):
        try:
            message = self.format(record)
            headers = {
                "Title": f"FAQ {record.levelname}: {record.name}",
                "Priority": self.priority
            }
            if self.tags:
                headers["Tags"] = ",".join(self.tags)

            response = self.client.post(self.url, content=message.encode('utf-8'), headers=headers, auth=self.auth)
            response.raise_for_status()
        except Exception:
            self.handleError(record)


def configure_logging(logger: logging.Logger, ntfy_topic: str = "") -> None:
    """Attach the stdout handler and, when a topic is set, the ntfy alert handler."""
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        if isinstance(handler, NtfyHandler) or getattr(handler, "name", None) == "faq-stdout":
            logger.removeHandler(handler)

    if ntfy_topic:
        ntfy_handler = NtfyHandler(
            topic=ntfy_topic,
            priority="high",
            tags=["warning", "question"]
        )
        ntfy_handler.setLevel(logging.WARNING)
        ntfy_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ntfy_handler)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.set_name("faq-stdout")
    stdout_handler.setLevel(logging.INFO)
    stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stdout_handler)
