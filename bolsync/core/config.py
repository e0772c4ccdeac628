"""
Unified Configuration
All environment variables and settings in one place

ARCHITECTURE:
- ONE Supabase for tenants, sync jobs, snapshots and analyses
- bol.com Retailer + Advertising API endpoints are fixed but overridable
- Scheduled calls authenticate with CRON_SECRET, manual calls with BOL_WEBHOOK_SECRET

SECURITY:
- All secrets loaded from environment variables
- No hardcoded credentials
"""
from typing import Optional
import logging
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings.
    Validates all environment variables at startup.
    """

    # ============================================================================
    # SERVER
    # ============================================================================

    environment: str = Field(default="production", description="Environment: development/staging/production")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # ============================================================================
    # DATABASE (Supabase PostgreSQL)
    # ============================================================================

    supabase_url: str = Field(description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous key")
    supabase_service_key: str = Field(description="Supabase service key (backend uses this)")

    # ============================================================================
    # INVOCATION SECRETS
    # ============================================================================

    cron_secret: Optional[str] = Field(default=None, description="Bearer secret presented by the scheduler")
    bol_webhook_secret: Optional[str] = Field(default=None, description="x-webhook-secret for manual triggers")

    # ============================================================================
    # BOL.COM API
    # ============================================================================

    bol_api_base: str = Field(default="https://api.bol.com", description="Retailer API base URL")
    bol_ads_base: str = Field(default="https://advertising.bol.com", description="Advertising API base URL")
    bol_token_url: str = Field(
        default="https://login.bol.com/token?grant_type=client_credentials",
        description="OAuth2 client-credentials token endpoint"
    )
    bol_page_size: int = Field(default=50, description="Fixed page size of bol.com list endpoints")
    http_timeout_seconds: float = Field(default=30.0, description="Outbound HTTP timeout")

    # ============================================================================
    # EXPORT JOBS
    # ============================================================================

    export_max_attempts: int = Field(default=50, description="Max status polls per export job (50 x 5 min = ~4h)")
    export_max_age_hours: int = Field(default=24, description="Pending export jobs older than this are expired")

    # ============================================================================
    # ENRICHMENT THROTTLING
    # ============================================================================

    enrichment_max_eans: int = Field(default=50, description="Unique EANs enriched per tenant")
    enrichment_top_eans: int = Field(default=20, description="EANs that get catalog + forecast enrichment")
    competitor_delay_seconds: float = Field(default=0.15, description="Pause between competitor lookups")
    rank_delay_seconds: float = Field(default=0.10, description="Pause between rank lookups")
    catalog_delay_seconds: float = Field(default=0.15, description="Pause between catalog/forecast lookups")
    ads_delay_seconds: float = Field(default=0.10, description="Pause between ad group lookups")
    insights_delay_seconds: float = Field(default=0.20, description="Pause between offer insight batches")

    # ============================================================================
    # BACKGROUND JOBS
    # ============================================================================

    redis_url: Optional[str] = Field(default=None, description="Redis connection URL (Dramatiq broker)")

    # ============================================================================
    # PRODUCTION INFRASTRUCTURE
    # ============================================================================

    sentry_dsn: Optional[str] = Field(default=None, description="Sentry DSN for error tracking")

    @model_validator(mode='after')
    def validate_settings(self):
        """
        Validate critical settings at startup.

        - Warn if no trigger secret is configured (every sync call would be rejected)
        - Warn if debug mode enabled in production
        """
        if self.environment == "production":
            if self.debug:
                logger.warning("⚠️  DEBUG MODE ENABLED IN PRODUCTION! This is insecure.")

            if not self.sentry_dsn:
                logger.warning("⚠️  Sentry not configured in production. Error tracking disabled.")

        if not self.cron_secret and not self.bol_webhook_secret:
            logger.warning("⚠️  Neither CRON_SECRET nor BOL_WEBHOOK_SECRET set. Sync endpoints will reject all calls.")

        logger.info("=" * 80)
        logger.info("bolsync Configuration Loaded")
        logger.info("=" * 80)
        logger.info(f"Environment: {self.environment}")
        logger.info(f"Debug: {self.debug}")
        logger.info(f"Supabase URL: {self.supabase_url}")
        logger.info(f"bol.com API: {self.bol_api_base}")
        logger.info(f"Redis: {'✅ Configured' if self.redis_url else '❌ Not configured'}")
        logger.info(f"Sentry: {'✅ Configured' if self.sentry_dsn else '❌ Not configured'}")
        logger.info("=" * 80)

        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
