"""Tests for security policy presets and settings mapping."""

import pytest

from hlpfl_forms.core.config import Settings
from hlpfl_forms.dependencies import build_services
from hlpfl_forms.security import (
    OpaqueTokenCodec,
    RateLimitRule,
    SecurityPolicy,
    SignedTokenCodec,
)


class TestPresets:
    def test_basic(self):
        policy = SecurityPolicy.basic()

        assert policy.token_scheme == "opaque"
        assert policy.enforce_csrf is False
        assert policy.rate_limits.general == RateLimitRule(100, 60_000)
        assert policy.rate_limits.auth is None
        assert policy.rate_limits.form_submission is None

    def test_enhanced(self):
        policy = SecurityPolicy.enhanced()

        assert policy.token_scheme == "opaque"
        assert policy.enforce_csrf is False
        assert policy.rate_limits.auth == RateLimitRule(5, 60_000)
        assert policy.rate_limits.form_submission is None

    def test_secure(self):
        policy = SecurityPolicy.secure()

        assert policy.token_scheme == "signed"
        assert policy.enforce_csrf is True
        assert policy.rate_limits.form_submission == RateLimitRule(10, 60_000)
        assert policy.token_ttl_seconds == 86400
        assert policy.csrf_ttl_seconds == 3600

    def test_with_overrides_returns_copy(self):
        base = SecurityPolicy.secure()
        relaxed = base.with_overrides(enforce_csrf=False)

        assert relaxed.enforce_csrf is False
        assert base.enforce_csrf is True


class TestFromSettings:
    def test_maps_every_field(self, settings):
        custom = settings.model_copy(
            update={
                "token_scheme": "opaque",
                "enforce_csrf": False,
                "rate_limit_window_ms": 1000,
                "rate_limit_requests": 7,
                "rate_limit_auth_attempts": 2,
                "rate_limit_form_submissions": 3,
                "token_ttl_seconds": 60,
                "csrf_ttl_seconds": 30,
                "cors_origin": "https://forms.example",
            }
        )
        policy = SecurityPolicy.from_settings(custom)

        assert policy.token_scheme == "opaque"
        assert policy.enforce_csrf is False
        assert policy.rate_limits.general == RateLimitRule(7, 1000)
        assert policy.rate_limits.auth == RateLimitRule(2, 1000)
        assert policy.rate_limits.form_submission == RateLimitRule(3, 1000)
        assert policy.token_ttl_seconds == 60
        assert policy.csrf_ttl_seconds == 30
        assert policy.cors_origin == "https://forms.example"


class TestBuildServices:
    @pytest.mark.parametrize(
        "policy,codec",
        [
            (SecurityPolicy.secure(), SignedTokenCodec),
            (SecurityPolicy.basic(), OpaqueTokenCodec),
        ],
    )
    def test_codec_follows_policy(self, settings: Settings, policy, codec):
        services = build_services(settings, policy=policy)
        assert isinstance(services.tokens, codec)
        assert services.tokens.scheme == policy.token_scheme
