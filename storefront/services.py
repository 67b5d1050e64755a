"""
Conteneur des services partagés, construit une fois au démarrage et rangé dans app.state.services.
Les handlers le récupèrent via la dépendance get_services (pas d'état global de module).
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request

from storefront.config import Settings
from storefront.feed.repository import FeedRepository, InMemoryFeedRepository, SupabaseFeedRepository
from storefront.feed.service import FeedService
from storefront.infra.firestore_client import create_firestore_client
from storefront.infra.supabase_client import create_supabase_client
from storefront.notifications.dispatcher import NotificationDispatcher
from storefront.notifications.transports import build_transports
from storefront.orders.idempotency import (
    InMemoryProcessedEventStore,
    ProcessedEventStore,
    SupabaseProcessedEventStore,
)
from storefront.orders.repository import InMemoryOrderRepository, OrderRepository, SupabaseOrderRepository
from storefront.orders.service import OrderIntakeService
from storefront.orders.submissions import FirestoreSubmissionStore, RepositorySubmissionStore, SubmissionStore
from storefront.payments import PaymentProvider, build_providers

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    orders: OrderRepository
    processed_events: ProcessedEventStore
    notifier: NotificationDispatcher
    providers: Dict[str, PaymentProvider]
    submissions: SubmissionStore
    feed: FeedService
    intake: OrderIntakeService
    supabase: Optional[Any] = field(default=None, repr=False)


def build_services(
    settings: Settings,
    *,
    supabase: Optional[Any] = None,
    orders: Optional[OrderRepository] = None,
    processed_events: Optional[ProcessedEventStore] = None,
    feed_repository: Optional[FeedRepository] = None,
    notifier: Optional[NotificationDispatcher] = None,
    providers: Optional[Dict[str, PaymentProvider]] = None,
    submissions: Optional[SubmissionStore] = None,
) -> Services:
    """
    Assemble les services à partir de Settings.
    - Supabase configuré: dépôts Supabase; sinon dépôts en mémoire.
    - Firebase configuré: soumissions archivées dans Firestore.
    - Chaque dépendance peut être injectée (tests, outils).
    """
    if supabase is None and orders is None:
        supabase = create_supabase_client(settings)

    if orders is None:
        orders = SupabaseOrderRepository(supabase) if supabase else InMemoryOrderRepository()
    if processed_events is None:
        processed_events = SupabaseProcessedEventStore(supabase) if supabase else InMemoryProcessedEventStore()
    if feed_repository is None:
        feed_repository = SupabaseFeedRepository(supabase) if supabase else InMemoryFeedRepository()
    if notifier is None:
        notifier = NotificationDispatcher(build_transports(settings), settings.sender, settings.company_email)
    if providers is None:
        providers = build_providers(settings)
    if submissions is None:
        firestore = create_firestore_client(settings)
        submissions = FirestoreSubmissionStore(firestore) if firestore else RepositorySubmissionStore(orders)

    if notifier.transport_name is None:
        logger.warning("no e-mail transport configured, notifications will be skipped")
    if not settings.company_email:
        logger.warning("No COMPANY_EMAIL configured; orders will be stored but not emailed")

    intake = OrderIntakeService(
        orders=orders,
        processed_events=processed_events,
        notifier=notifier,
        providers=providers,
        submissions=submissions,
        default_provider=settings.payment_provider,
        site_url=settings.site_url,
    )
    return Services(
        settings=settings,
        orders=orders,
        processed_events=processed_events,
        notifier=notifier,
        providers=providers,
        submissions=submissions,
        feed=FeedService(feed_repository, notifier),
        intake=intake,
        supabase=supabase,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
