"""
Tests for admin sessions, submission cooldowns and captcha verification
"""
import logging
import re
import threading

import httpx
import pytest

from faq.security import CAPTCHA_VERIFY_URL, SecurityManager


def build_manager(clock, http_client=None, **kwargs):
    options = dict(
        captcha_client='client-key',
        captcha_secret='captcha-secret',
        login='admin',
        password='s3cret',
        clock=clock,
        http_client=http_client or httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500))),
    )
    options.update(kwargs)
    return SecurityManager(**options)


class TestAuthentication:
    """Tests for admin login and session tokens"""

    def test_valid_credentials_return_token(self, clock):
        manager = build_manager(clock)

        token = manager.authenticate('admin', 's3cret')

        assert token is not None
        assert token.expires_at == clock.after(30)
        assert manager.check_token(token.value)

    def test_token_expires_after_thirty_minutes(self, clock):
        manager = build_manager(clock)
        token = manager.authenticate('admin', 's3cret')

        clock.advance(minutes=30)
        assert manager.check_token(token.value)

        clock.advance(seconds=1)
        assert not manager.check_token(token.value)

    def test_unknown_token_is_rejected(self, clock):
        manager = build_manager(clock)
        manager.authenticate('admin', 's3cret')

        assert not manager.check_token('not-a-token')
        assert not manager.check_token('')
        assert not manager.check_token(None)

    def test_wrong_login_and_wrong_password_fail_identically(self, clock, caplog):
        manager = build_manager(clock)

        with caplog.at_level(logging.DEBUG, logger='faq.security'):
            wrong_login = manager.authenticate('root', 's3cret')
        login_messages = [(r.levelname, r.getMessage()) for r in caplog.records]
        caplog.clear()
        with caplog.at_level(logging.DEBUG, logger='faq.security'):
            wrong_password = manager.authenticate('admin', 'guess')
        password_messages = [(r.levelname, r.getMessage()) for r in caplog.records]

        assert wrong_login is None
        assert wrong_password is None
        assert manager._tokens == {}
        assert login_messages == password_messages == [('WARNING', 'Admin authentication failed')]

    def test_check_token_purges_expired_sessions(self, clock):
        manager = build_manager(clock)
        old = manager.authenticate('admin', 's3cret')
        clock.advance(minutes=20)
        recent = manager.authenticate('admin', 's3cret')
        clock.advance(minutes=15)

        assert manager.check_token(recent.value)
        assert old.value not in manager._tokens
        assert list(manager._tokens) == [recent.value]

    def test_sessions_are_distinct(self, clock):
        manager = build_manager(clock)

        first = manager.authenticate('admin', 's3cret')
        second = manager.authenticate('admin', 's3cret')

        assert first.value != second.value
        assert manager.check_token(first.value)
        assert manager.check_token(second.value)


class TestCooldowns:
    """Tests for per-address submission cooldowns"""

    @pytest.mark.parametrize('address', ['127.0.0.1', '10.0.0.2', '2001:db8::1'])
    def test_address_blocked_until_cooldown_elapses(self, clock, address):
        manager = build_manager(clock)
        assert manager.can_submit(address)

        manager.register_submission(address)

        assert not manager.can_submit(address)
        clock.advance(minutes=1439)
        assert not manager.can_submit(address)
        clock.advance(minutes=1)
        assert manager.can_submit(address)

    def test_custom_cooldown(self, clock):
        manager = build_manager(clock, cooldown_minutes=5)
        manager.register_submission('10.0.0.1')

        clock.advance(minutes=5)

        assert manager.can_submit('10.0.0.1')

    def test_other_addresses_unaffected(self, clock):
        manager = build_manager(clock)
        manager.register_submission('10.0.0.1')

        assert manager.can_submit('10.0.0.2')

    def test_protection_disabled_always_allows(self, clock):
        manager = build_manager(clock, ip_protection=False)

        for _ in range(3):
            manager.register_submission('10.0.0.1')
            assert manager.can_submit('10.0.0.1')
        assert manager.cooldown_fingerprints() == []

    def test_registration_overwrites_previous_cooldown(self, clock):
        manager = build_manager(clock, cooldown_minutes=10)
        manager.register_submission('10.0.0.1')
        clock.advance(minutes=8)
        manager.register_submission('10.0.0.1')

        clock.advance(minutes=5)

        assert not manager.can_submit('10.0.0.1')
        assert len(manager.cooldown_fingerprints()) == 1

    def test_can_submit_does_not_mutate(self, clock):
        manager = build_manager(clock)
        manager.register_submission('10.0.0.1')
        before = dict(manager._cooldowns)

        for _ in range(3):
            manager.can_submit('10.0.0.1')
            manager.can_submit('10.0.0.9')

        assert manager._cooldowns == before

    def test_raw_addresses_are_never_stored(self, clock):
        manager = build_manager(clock)
        manager.register_submission('192.168.1.10')
        manager.register_submission('192.168.1.11')

        keys = manager.cooldown_fingerprints()

        assert len(keys) == 2
        assert all(re.fullmatch(r'[0-9a-f]{64}', key) for key in keys)
        assert '192.168.1.10' not in keys and '192.168.1.11' not in keys
        first, second = keys
        assert sum(a == b for a, b in zip(first, second)) < 32

    def test_keyed_fingerprints(self, clock):
        plain = build_manager(clock)
        keyed = build_manager(clock, fingerprint_key=b'server-secret')

        assert plain.fingerprint('10.0.0.1') != keyed.fingerprint('10.0.0.1')

    def test_submission_form_needs_master_switch(self, clock):
        hidden = build_manager(clock, show_submission_form=False)
        shown = build_manager(clock, show_submission_form=True)

        assert not hidden.can_show_submission_form('10.0.0.1')
        assert shown.can_show_submission_form('10.0.0.1')

        shown.register_submission('10.0.0.1')
        assert not shown.can_show_submission_form('10.0.0.1')

    def test_concurrent_registrations(self, clock):
        manager = build_manager(clock)
        addresses = [f'10.0.{i}.1' for i in range(50)]
        threads = [threading.Thread(target=manager.register_submission, args=(a,)) for a in addresses]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(manager.cooldown_fingerprints()) == 50
        assert not any(manager.can_submit(a) for a in addresses)


class TestCaptcha:
    """Tests for reCAPTCHA verification"""

    def test_success(self, clock, recording_transport):
        transport = recording_transport(lambda r: httpx.Response(200, json={'success': True}))
        manager = build_manager(clock, http_client=transport.client())

        assert manager.verify_captcha('user-response')

        request = transport.requests[0]
        assert request.method == 'POST'
        assert str(request.url).startswith(CAPTCHA_VERIFY_URL)
        assert request.url.params['secret'] == 'captcha-secret'
        assert request.url.params['response'] == 'user-response'

    @pytest.mark.parametrize('response', [
        httpx.Response(200, json={'success': False}),
        httpx.Response(200, json={'error-codes': ['invalid-input-response']}),
        httpx.Response(200, content=b'not json'),
        httpx.Response(200, json=['success']),
        httpx.Response(200, json={'success': 'false'}),
        httpx.Response(200, json={'success': 1}),
        httpx.Response(500, json={'success': True}),
        httpx.Response(403, content=b''),
    ])
    def test_anything_but_clear_success_fails(self, clock, recording_transport, response):
        transport = recording_transport(lambda r: response)
        manager = build_manager(clock, http_client=transport.client())

        assert not manager.verify_captcha('user-response')

    def test_transport_error_fails_closed(self, clock, recording_transport):
        def handler(request):
            raise httpx.ConnectTimeout('timed out', request=request)

        transport = recording_transport(handler)
        manager = build_manager(clock, http_client=transport.client())

        assert not manager.verify_captcha('user-response')

    def test_missing_response_skips_provider(self, clock, recording_transport):
        transport = recording_transport(lambda r: httpx.Response(200, json={'success': True}))
        manager = build_manager(clock, http_client=transport.client())

        assert not manager.verify_captcha('')
        assert not manager.verify_captcha(None)
        assert transport.requests == []
