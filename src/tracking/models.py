# src/tracking/models.py — v1
"""Tracking domain models: ProviderCallRecord, ProviderStats, ServiceMetrics, analytics."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from reelsearch.core.models import AttemptStatus, HealthState


class ProviderCallRecord(BaseModel):
    """Individual provider attempt log entry."""

    timestamp: datetime
    provider: str
    operation: str
    outcome: AttemptStatus
    latency_ms: float


class ProviderStats(BaseModel):
    """Observed per-provider figures over the rolling window."""

    status: HealthState
    total_requests: int = 0
    success_rate: float | None = None
    error_rate: float | None = None
    average_latency_ms: float | None = None


class GlobalMetrics(BaseModel):
    """Totals across all providers since process start."""

    total_requests: int = 0
    error_rate: float = 0.0
    average_latency_ms: float = 0.0


class ServiceMetrics(BaseModel):
    """Consolidated view returned by FailoverOrchestrator.service_metrics()."""

    providers: dict[str, ProviderStats] = Field(default_factory=dict)
    global_metrics: GlobalMetrics = Field(default_factory=GlobalMetrics)


class SearchAnalyticsRecord(BaseModel):
    """One executed (non-cached) search, emitted to the analytics sink."""

    query_id: str
    timestamp: datetime
    query: str
    filters: dict[str, Any] = Field(default_factory=dict)
    result_count: int
    execution_ms: float
    provider: str | None = None
