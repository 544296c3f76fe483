# faq/security.py
"""
Access control for the FAQ service.

The SecurityManager owns three pieces of process-wide state: the admin
session tokens, the per-address submission cooldowns and the reCAPTCHA
credentials. Every failure is reported as a False/None result so a rejected
caller never takes the process down.
"""

import hmac
import logging
import threading
from typing import Dict, Optional

import httpx

from faq.models import IpCooldown, SessionToken
from faq.tools import Clock, sha256, uuid_from_timestamp

logger = logging.getLogger(__name__)

CAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
SESSION_MINUTES = 30
DEFAULT_COOLDOWN_MINUTES = 1440


class SecurityManager:
    def __init__(
        self,
        captcha_client: str,
        captcha_secret: str,
        login: str,
        password: str,
        cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES,
        show_submission_form: bool = False,
        ip_protection: bool = True,
        fingerprint_key: Optional[bytes] = None,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
        timeout: float = 10.0,
    ):
        self.captcha_client = captcha_client
        self._captcha_secret = captcha_secret
        self._login = login
        self._password = password
        self.cooldown_minutes = cooldown_minutes
        self.show_submission_form = show_submission_form
        self.ip_protection = ip_protection
        self._fingerprint_key = fingerprint_key
        self._http = http_client or httpx.Client(timeout=timeout)
        self._clock = clock or Clock()

        self._tokens: Dict[str, SessionToken] = {}
        self._tokens_lock = threading.Lock()
        self._cooldowns: Dict[str, IpCooldown] = {}
        self._cooldowns_lock = threading.Lock()

    # -- admin sessions ---------------------------------------------------

    def authenticate(self, login: str, password: str) -> Optional[SessionToken]:
        """Return a 30 minute session token, or None on bad credentials.

        Both fields are always compared so an unknown login and a wrong
        password cannot be told apart.
        """
        login_ok = hmac.compare_digest(login.encode(), self._login.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if not (login_ok and password_ok):
            logger.warning("Admin authentication failed")
            return None

        token = SessionToken(
            value=uuid_from_timestamp(),
            expires_at=self._clock.after(SESSION_MINUTES),
        )
        with self._tokens_lock:
            self._tokens[token.value] = token
        logger.info("Admin session opened")
        return token

    def check_token(self, value: Optional[str]) -> bool:
        now = self._clock.now()
        with self._tokens_lock:
            # Drop every expired session before the lookup
            expired = [k for k, t in self._tokens.items() if t.expires_at < now]
            for k in expired:
                del self._tokens[k]
            return bool(value) and value in self._tokens

    # -- submission cooldowns ---------------------------------------------

    def fingerprint(self, address: str) -> str:
        return sha256(address, self._fingerprint_key)

    def register_submission(self, address: str) -> None:
        if not self.ip_protection:
            return
        cooldown = IpCooldown(
            fingerprint=self.fingerprint(address),
            unlock_at=self._clock.after(self.cooldown_minutes),
        )
        with self._cooldowns_lock:
            self._cooldowns[cooldown.fingerprint] = cooldown

    def can_submit(self, address: str) -> bool:
        if not self.ip_protection:
            return True
        with self._cooldowns_lock:
            cooldown = self._cooldowns.get(self.fingerprint(address))
        return cooldown is None or self._clock.now() >= cooldown.unlock_at

    def can_show_submission_form(self, address: str) -> bool:
        return self.show_submission_form and self.can_submit(address)

    def cooldown_fingerprints(self) -> list[str]:
        with self._cooldowns_lock:
            return list(self._cooldowns)

    # -- reCAPTCHA --------------------------------------------------------

    def verify_captcha(self, response_token: Optional[str]) -> bool:
        if not response_token:
            return False
        try:
            res = self._http.post(
                CAPTCHA_VERIFY_URL,
                params={"secret": self._captcha_secret, "response": response_token},
            )
            if res.status_code != 200:
                logger.warning("Captcha verification returned HTTP %s", res.status_code)
                return False
            body = res.json()
            return isinstance(body, dict) and body.get("success") is True
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Captcha verification failed: %s", e)
            return False
