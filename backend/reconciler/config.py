"""
Reconciler service configuration.
Uses HR_ prefix for shared DB/Redis settings; adds pipeline-specific sources, throttles and schedules.
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.enums import PipelineName


class ReconcilerSettings(BaseSettings):
    """Reconciler-specific settings; use get_settings() for Redis/DB."""

    model_config = SettingsConfigDict(
        env_prefix="HR_RECONCILER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Certification authority
    muis_base_url: str = Field(default="https://halal.muis.gov.sg/", description="Page used to bootstrap the session")
    muis_search_url: str = Field(default="https://halal.muis.gov.sg/api/halal/establishments")
    muis_origin: str = Field(default="https://halal.muis.gov.sg")
    browser_user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    verify_tls: bool = Field(default=True, description="Disable only if the authority's certificate chain is broken")

    # Social liveness
    instagram_base_url: str = "https://www.instagram.com"
    probe_user_agent: str = "Mozilla/5.0 (compatible; CatalogReconciler/1.0)"

    # Timeouts (seconds)
    session_timeout_s: float = 30.0
    search_timeout_s: float = 30.0
    probe_timeout_s: float = 20.0

    # Fixed delay between consecutive outbound requests (seconds)
    certification_delay_s: float = Field(default=0.5, ge=0.0)
    liveness_delay_s: float = Field(default=0.15, ge=0.0)

    # Schedules
    timezone: str = "Asia/Singapore"
    certification_cron: str = "0 3 * * *"
    liveness_cron: str = "0 4 1 * *"

    # Host budget per invocation (seconds); the run is cancelled past it
    certification_budget_s: float = 540.0
    liveness_budget_s: float = 300.0

    # Run lock TTL; must exceed the longest budget
    run_lock_ttl_s: int = 900

    # Log proposals instead of writing them
    dry_run: bool = False

    # Run one pipeline immediately and exit instead of scheduling
    run_once: Optional[PipelineName] = None


def get_reconciler_settings() -> ReconcilerSettings:
    """Load reconciler settings. Call get_settings() before run if using shared Redis/DB."""
    return ReconcilerSettings()
