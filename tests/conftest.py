"""
Pytest fixtures and configuration for the FAQ service tests
"""
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from faq.config import Settings
from faq.tools import Clock


class FakeClock(Clock):
    """Clock frozen at a fixed instant until advanced"""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def advance(self, minutes=0, seconds=0):
        self.current += timedelta(minutes=minutes, seconds=seconds)


class RecordingTransport:
    """Collects outbound requests and answers them with a handler"""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.handler(request)

    def client(self):
        return httpx.Client(transport=httpx.MockTransport(self))

    def calls_to(self, host):
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_transport():
    """Factory building a RecordingTransport from a request handler"""
    return RecordingTransport


@pytest.fixture(scope='session')
def rsa_keys():
    """PEM encoded (private, public) key pair for signing assertions"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def settings(tmp_path):
    return Settings(
        captcha_client='client-key',
        captcha_secret='captcha-secret',
        admin_login='admin',
        admin_password='s3cret',
        show_submission_form=True,
        database=str(tmp_path / 'faq.db'),
    )


@pytest.fixture
def sample_rows():
    """Spreadsheet value matrix, header row first"""
    return [
        ['Numéro', 'Question', 'Réponse', 'Statut', 'Source', 'Commentaire'],
        ['1', 'Q1', 'A1', 'Validé'],
        ['x', 'Q2', '', 'Rédaction'],
        ['3', 'Q3', '', 'Rédaction', 'Question issue du site'],
        ['4', 'Q4', 'A4', 'Validé', '', ''],
    ]
