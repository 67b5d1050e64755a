import logging
from typing import Optional

from supabase import Client, create_client

from storefront.config import Settings

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Client Supabase service-role (bypass RLS) construit une seule fois au démarrage.
    - Retourne None si SUPABASE_URL / SUPABASE_SERVICE_ROLE sont absents: les dépôts en mémoire prennent le relais.
    """
    if not settings.supabase_configured:
        logger.warning("supabase not configured, using in-memory repositories")
        return None
    return create_client(settings.supabase_url, settings.supabase_service_role)
