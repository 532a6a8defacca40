# tests/unit/providers/test_unit_orchestrator.py — v1
"""Tests for providers/orchestrator.py: attempt ordering and failover."""

from __future__ import annotations

import asyncio

import pytest

from reelsearch.core.errors import (
    BelowThresholdError,
    CapabilityUnsupportedError,
    ProviderExhaustedError,
)
from reelsearch.core.models import (
    AnalysisRequest,
    AttemptStatus,
    Capability,
    HealthState,
    ProviderKind,
)
from reelsearch.logging.context import get_context
from reelsearch.providers.orchestrator import (
    FailoverOrchestrator,
    classify_failure,
    plan_attempts,
)

OPENAI, ANTHROPIC, GOOGLE, OLLAMA = (
    ProviderKind.OPENAI, ProviderKind.ANTHROPIC, ProviderKind.GOOGLE, ProviderKind.OLLAMA,
)
AVAILABLE, DEGRADED, UNAVAILABLE = (
    HealthState.AVAILABLE, HealthState.DEGRADED, HealthState.UNAVAILABLE,
)


class TestPlanAttempts:
    def test_tiers_then_registration_order(self, fake_provider_cls, make_health):
        providers = [fake_provider_cls(k) for k in (OPENAI, ANTHROPIC, GOOGLE, OLLAMA)]
        health = make_health({OPENAI: UNAVAILABLE, ANTHROPIC: DEGRADED, GOOGLE: AVAILABLE, OLLAMA: DEGRADED})
        order = [p.kind for p in plan_attempts(providers, health)]
        assert order == [GOOGLE, ANTHROPIC, OLLAMA, OPENAI]

    def test_available_preferred_goes_first(self, fake_provider_cls, make_health):
        providers = [fake_provider_cls(k) for k in (OPENAI, ANTHROPIC, GOOGLE)]
        health = make_health({OPENAI: AVAILABLE, ANTHROPIC: AVAILABLE, GOOGLE: AVAILABLE})
        order = [p.kind for p in plan_attempts(providers, health, preferred=GOOGLE)]
        assert order == [GOOGLE, OPENAI, ANTHROPIC]

    def test_degraded_preferred_not_promoted(self, fake_provider_cls, make_health):
        providers = [fake_provider_cls(k) for k in (OPENAI, ANTHROPIC)]
        health = make_health({OPENAI: AVAILABLE, ANTHROPIC: DEGRADED})
        order = [p.kind for p in plan_attempts(providers, health, preferred=ANTHROPIC)]
        assert order == [OPENAI, ANTHROPIC]

    def test_nobody_dropped(self, fake_provider_cls, make_health):
        providers = [fake_provider_cls(k) for k in (OPENAI, GOOGLE)]
        health = make_health({OPENAI: UNAVAILABLE, GOOGLE: UNAVAILABLE})
        assert len(plan_attempts(providers, health)) == 2


class TestClassifyFailure:
    def test_timeout(self):
        assert classify_failure(asyncio.TimeoutError()) is AttemptStatus.TIMEOUT

    def test_sdk_named_timeout(self):
        class APITimeoutError(Exception):
            pass

        assert classify_failure(APITimeoutError()) is AttemptStatus.TIMEOUT

    def test_other_errors(self):
        assert classify_failure(ConnectionError()) is AttemptStatus.ERROR


class TestFailoverOrchestrator:
    @pytest.mark.asyncio
    async def test_first_success_returned(self, fake_provider_cls, make_registry, make_health, interpretation_factory):
        first = fake_provider_cls(OPENAI, behavior=interpretation_factory(OPENAI, 0.9))
        second = fake_provider_cls(ANTHROPIC)
        orch = FailoverOrchestrator(
            make_registry(first, second), make_health({OPENAI: AVAILABLE, ANTHROPIC: AVAILABLE}),
        )
        result = await orch.execute(Capability.QUERY_INTERPRETATION, "beach")
        assert result.provider is OPENAI
        assert second.calls == []

    @pytest.mark.asyncio
    async def test_timeout_below_threshold_then_success(
        self, fake_provider_cls, make_registry, make_health, interpretation_factory,
    ):
        slow = fake_provider_cls(OPENAI, delay_s=1.0)
        weak = fake_provider_cls(ANTHROPIC, behavior=interpretation_factory(ANTHROPIC, 0.5))
        good = fake_provider_cls(GOOGLE, behavior=interpretation_factory(GOOGLE, 0.85))
        orch = FailoverOrchestrator(
            make_registry(slow, weak, good),
            make_health({OPENAI: AVAILABLE, ANTHROPIC: AVAILABLE, GOOGLE: AVAILABLE}),
            attempt_timeout_s=0.05,
        )
        result = await orch.execute(Capability.QUERY_INTERPRETATION, "beach")
        assert result.provider is GOOGLE
        assert result.confidence == 0.85
        m = orch.metrics
        assert m.request_count(provider="openai", outcome=AttemptStatus.TIMEOUT) == 1
        assert m.request_count(provider="anthropic", outcome=AttemptStatus.BELOW_THRESHOLD) == 1
        assert m.request_count(provider="google", outcome=AttemptStatus.SUCCESS) == 1

    @pytest.mark.asyncio
    async def test_all_fail_exhausted(self, fake_provider_cls, make_registry, make_health, interpretation_factory):
        providers = [
            fake_provider_cls(OPENAI, behavior=RuntimeError("500")),
            fake_provider_cls(ANTHROPIC, behavior=interpretation_factory(ANTHROPIC, 0.2)),
            fake_provider_cls(GOOGLE, behavior=ConnectionError("reset")),
        ]
        orch = FailoverOrchestrator(
            make_registry(*providers),
            make_health({OPENAI: AVAILABLE, ANTHROPIC: DEGRADED, GOOGLE: UNAVAILABLE}),
        )
        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orch.execute(Capability.QUERY_INTERPRETATION, "beach")
        err = exc_info.value
        assert [o.provider for o in err.attempts] == [OPENAI, ANTHROPIC, GOOGLE]
        assert [o.status for o in err.attempts] == [
            AttemptStatus.ERROR, AttemptStatus.BELOW_THRESHOLD, AttemptStatus.ERROR,
        ]
        assert isinstance(err.last_error, ConnectionError)
        assert all(len(p.calls) == 1 for p in providers)

    @pytest.mark.asyncio
    async def test_below_threshold_last_error(self, fake_provider_cls, make_registry, make_health, interpretation_factory):
        weak = fake_provider_cls(OPENAI, behavior=interpretation_factory(OPENAI, 0.3))
        orch = FailoverOrchestrator(make_registry(weak), make_health({OPENAI: AVAILABLE}))
        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orch.execute(Capability.QUERY_INTERPRETATION, "beach")
        assert isinstance(exc_info.value.last_error, BelowThresholdError)

    @pytest.mark.asyncio
    async def test_threshold_not_applied_to_image_analysis(
        self, fake_provider_cls, make_registry, make_health, image_analysis_factory,
    ):
        provider = fake_provider_cls(OPENAI, behavior=image_analysis_factory(OPENAI, 0.4))
        orch = FailoverOrchestrator(make_registry(provider), make_health({OPENAI: AVAILABLE}))
        result = await orch.execute(Capability.IMAGE_ANALYSIS, b"\xff\xd8\xff")
        assert result.confidence == 0.4
        assert not result.is_authoritative(orch.confidence_threshold)

    @pytest.mark.asyncio
    async def test_capability_unsupported_without_io(self, fake_provider_cls, make_registry, make_health):
        text_only = fake_provider_cls(OLLAMA, capabilities=frozenset({Capability.QUERY_INTERPRETATION}))
        orch = FailoverOrchestrator(make_registry(text_only), make_health({OLLAMA: AVAILABLE}))
        with pytest.raises(CapabilityUnsupportedError):
            await orch.execute(Capability.FACE_DETECTION, b"img")
        assert text_only.calls == []
        assert orch.metrics.request_count() == 0

    @pytest.mark.asyncio
    async def test_preferred_attempted_first(self, fake_provider_cls, make_registry, make_health):
        a, b = fake_provider_cls(OPENAI), fake_provider_cls(ANTHROPIC)
        orch = FailoverOrchestrator(make_registry(a, b), make_health({OPENAI: AVAILABLE, ANTHROPIC: AVAILABLE}))
        result = await orch.execute(Capability.QUERY_INTERPRETATION, "q", preferred_provider=ANTHROPIC)
        assert result.provider is ANTHROPIC
        assert a.calls == []

    @pytest.mark.asyncio
    async def test_unregistered_preferred_ignored(self, fake_provider_cls, make_registry, make_health, caplog):
        a = fake_provider_cls(OPENAI)
        orch = FailoverOrchestrator(make_registry(a), make_health({OPENAI: AVAILABLE}))
        result = await orch.execute(Capability.QUERY_INTERPRETATION, "q", preferred_provider=GOOGLE)
        assert result.provider is OPENAI
        assert "not registered" in caplog.text

    @pytest.mark.asyncio
    async def test_execute_request(self, fake_provider_cls, make_registry, make_health):
        a = fake_provider_cls(OPENAI)
        orch = FailoverOrchestrator(make_registry(a), make_health({OPENAI: AVAILABLE}))
        request = AnalysisRequest(operation=Capability.QUERY_INTERPRETATION, payload="sunset")
        result = await orch.execute_request(request)
        assert result.provider is OPENAI
        assert a.calls == [("sunset", Capability.QUERY_INTERPRETATION)]

    @pytest.mark.asyncio
    async def test_provider_context_cleared(self, fake_provider_cls, make_registry, make_health):
        orch = FailoverOrchestrator(make_registry(fake_provider_cls(OPENAI)), make_health({OPENAI: AVAILABLE}))
        await orch.execute(Capability.QUERY_INTERPRETATION, "q")
        assert get_context().provider is None

    @pytest.mark.asyncio
    async def test_service_metrics_observed(self, fake_provider_cls, make_registry, make_health, interpretation_factory):
        flaky = fake_provider_cls(OPENAI, behavior=RuntimeError("x"))
        good = fake_provider_cls(ANTHROPIC, behavior=interpretation_factory(ANTHROPIC, 0.9))
        orch = FailoverOrchestrator(
            make_registry(flaky, good), make_health({OPENAI: AVAILABLE, ANTHROPIC: DEGRADED}),
        )
        for _ in range(2):
            await orch.execute(Capability.QUERY_INTERPRETATION, "q")
        metrics = orch.service_metrics()
        assert metrics.providers["openai"].success_rate == 0.0
        assert metrics.providers["anthropic"].success_rate == 1.0
        assert metrics.providers["anthropic"].status is DEGRADED
        assert metrics.global_metrics.total_requests == 4
        assert metrics.global_metrics.error_rate == 0.5
