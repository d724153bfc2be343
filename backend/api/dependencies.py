"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Persistence is Supabase when SUPABASE_URL is configured and in-memory
otherwise, so the API runs locally without a database.
"""

import logging
from typing import TYPE_CHECKING, Optional

from shared.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Type checking imports (avoids circular imports)
if TYPE_CHECKING:
    from modules.billing.checkout import CheckoutService
    from modules.billing.interfaces import IEntitlementStore, IPaymentGateway
    from modules.billing.service import BillingService
    from modules.billing.webhooks import WebhookIngestor
    from modules.generation.service import GenerationService
    from modules.marketplace.interfaces import IMarketplaceRepository
    from modules.marketplace.service import MarketplaceService
    from modules.users.interfaces import IUserRepository
    from modules.users.service import UserService


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._user_repository: "IUserRepository | None" = None
        self._user_service: "UserService | None" = None
        self._marketplace_repository: "IMarketplaceRepository | None" = None
        self._marketplace_service: "MarketplaceService | None" = None
        self._entitlement_store: "IEntitlementStore | None" = None
        self._payment_gateway: "IPaymentGateway | None" = None
        self._billing_service: "BillingService | None" = None
        self._checkout_service: "CheckoutService | None" = None
        self._webhook_ingestor: "WebhookIngestor | None" = None
        self._generation_service: "GenerationService | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def uses_database(self) -> bool:
        return bool(self.settings.supabase_url)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @property
    def user_repository(self) -> "IUserRepository":
        """Get the user repository instance."""
        if self._user_repository is None:
            if self.uses_database:
                from modules.users.repository import SupabaseUserRepository
                from shared.database import get_supabase_client
                self._user_repository = SupabaseUserRepository(get_supabase_client())
            else:
                from modules.users.repository import InMemoryUserRepository
                self._user_repository = InMemoryUserRepository()
        return self._user_repository

    @property
    def users(self) -> "UserService":
        """Get the user service instance."""
        if self._user_service is None:
            from modules.users.marketing import ActiveCampaignClient
            from modules.users.service import UserService

            settings = self.settings
            marketing = None
            if settings.enable_marketing_sync and settings.activecampaign_api_url:
                marketing = ActiveCampaignClient(
                    settings.activecampaign_api_url,
                    settings.activecampaign_api_key,
                    settings.activecampaign_list_id,
                )
            self._user_service = UserService(
                repository=self.user_repository,
                marketing=marketing,
                starting_credits=settings.free_starting_credits,
            )
        return self._user_service

    # -------------------------------------------------------------------------
    # Marketplace
    # -------------------------------------------------------------------------

    @property
    def marketplace_repository(self) -> "IMarketplaceRepository":
        """Get the marketplace repository instance."""
        if self._marketplace_repository is None:
            if self.uses_database:
                from modules.marketplace.repository import SupabaseMarketplaceRepository
                from shared.database import get_supabase_client
                self._marketplace_repository = SupabaseMarketplaceRepository(get_supabase_client())
            else:
                from modules.marketplace.repository import InMemoryMarketplaceRepository
                self._marketplace_repository = InMemoryMarketplaceRepository()
        return self._marketplace_repository

    @property
    def marketplace(self) -> "MarketplaceService":
        """Get the marketplace service instance."""
        if self._marketplace_service is None:
            from modules.marketplace.service import MarketplaceService
            self._marketplace_service = MarketplaceService(self.marketplace_repository)
        return self._marketplace_service

    # -------------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------------

    @property
    def entitlement_store(self) -> "IEntitlementStore":
        """Get the entitlement store instance."""
        if self._entitlement_store is None:
            if self.uses_database:
                from modules.billing.repository import SupabaseEntitlementStore
                from shared.database import get_supabase_client
                self._entitlement_store = SupabaseEntitlementStore(get_supabase_client())
            else:
                from modules.billing.repository import InMemoryEntitlementStore
                self._entitlement_store = InMemoryEntitlementStore(
                    self.user_repository,  # type: ignore[arg-type]
                    self.marketplace_repository,  # type: ignore[arg-type]
                )
        return self._entitlement_store

    @property
    def payment_gateway(self) -> "IPaymentGateway":
        """Get the payment gateway instance."""
        if self._payment_gateway is None:
            from modules.billing.gateway import StripeGateway
            self._payment_gateway = StripeGateway(
                self.settings.stripe_secret_key,
                self.settings.stripe_webhook_secret,
            )
        return self._payment_gateway

    @property
    def billing(self) -> "BillingService":
        """Get the billing service instance."""
        if self._billing_service is None:
            from modules.billing.service import BillingService
            self._billing_service = BillingService(self.entitlement_store)
        return self._billing_service

    @property
    def checkout(self) -> "CheckoutService":
        """Get the checkout service instance."""
        if self._checkout_service is None:
            from modules.billing.alerts import LoggingPayoutAlerter
            from modules.billing.checkout import CheckoutService
            self._checkout_service = CheckoutService(
                gateway=self.payment_gateway,
                marketplace=self.marketplace_repository,
                users=self.user_repository,
                alerter=LoggingPayoutAlerter(),
                app_url=self.settings.app_url,
            )
        return self._checkout_service

    @property
    def webhooks(self) -> "WebhookIngestor":
        """Get the webhook ingestor instance."""
        if self._webhook_ingestor is None:
            from modules.billing.webhooks import WebhookIngestor
            self._webhook_ingestor = WebhookIngestor(
                gateway=self.payment_gateway,
                store=self.entitlement_store,
                marketplace=self.marketplace_repository,
            )
        return self._webhook_ingestor

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    @property
    def generation(self) -> "GenerationService":
        """
        Get the generation service instance.

        Only providers with credentials are registered, so a missing key
        makes its model unavailable without breaking the rest of the module.
        """
        if self._generation_service is None:
            from modules.generation.providers import (
                BiRefNetBackgroundRemover,
                FluxProGenerator,
                FluxProUltraGenerator,
                OpenAIImageGenerator,
            )
            from modules.generation.service import GenerationService
            from modules.generation.storage import S3ObjectStorage

            settings = self.settings
            generators = {}
            background_remover = None
            if settings.openai_api_key:
                generators["openai"] = OpenAIImageGenerator(
                    settings.openai_api_key, settings.openai_image_model
                )
            if settings.fal_key:
                generators["flux-pro-1.1"] = FluxProGenerator(settings.fal_key)
                generators["flux-pro-1.1-ultra"] = FluxProUltraGenerator(settings.fal_key)
                background_remover = BiRefNetBackgroundRemover(settings.fal_key)
            if not generators:
                logger.warning("No image model API keys configured; generation is unavailable")

            self._generation_service = GenerationService(
                users=self.users,
                marketplace=self.marketplace_repository,
                generators=generators,
                storage=S3ObjectStorage(
                    bucket=settings.s3_bucket,
                    region=settings.aws_region,
                    access_key_id=settings.aws_access_key_id,
                    secret_access_key=settings.aws_secret_access_key,
                ),
                background_remover=background_remover,
            )
        return self._generation_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._user_repository = None
        self._user_service = None
        self._marketplace_repository = None
        self._marketplace_service = None
        self._entitlement_store = None
        self._payment_gateway = None
        self._billing_service = None
        self._checkout_service = None
        self._webhook_ingestor = None
        self._generation_service = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_user_service() -> "UserService":
    """FastAPI dependency for user service."""
    return get_container().users


def get_marketplace_service() -> "MarketplaceService":
    """FastAPI dependency for marketplace service."""
    return get_container().marketplace


def get_billing_service() -> "BillingService":
    """FastAPI dependency for billing service."""
    return get_container().billing


def get_checkout_service() -> "CheckoutService":
    """FastAPI dependency for checkout service."""
    return get_container().checkout


def get_webhook_ingestor() -> "WebhookIngestor":
    """FastAPI dependency for webhook ingestor."""
    return get_container().webhooks


def get_generation_service() -> "GenerationService":
    """FastAPI dependency for generation service."""
    return get_container().generation
