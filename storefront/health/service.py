"""
Diagnostic Supabase: DNS de l'hôte + lecture d'une ligne par table utilisée.
"""
import logging
import socket
from typing import Any, Dict, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

TABLES = ("orders", "comments", "newsletter", "processed_events")


def health_supabase_info(supabase_url: str, client: Optional[Any]) -> Dict[str, Any]:
    info: Dict[str, Any] = {"configured": client is not None, "url": supabase_url or None}
    if client is None:
        return info

    host = urlparse(supabase_url).hostname or ""
    try:
        socket.getaddrinfo(host, 443)
        info["dns_ok"] = True
    except OSError as e:
        info["dns_ok"] = False
        info["dns_error"] = str(e)
        return info

    tables: Dict[str, Any] = {}
    for table in TABLES:
        try:
            client.table(table).select("*").limit(1).execute()
            tables[table] = {"ok": True}
        except Exception as e:
            logger.warning("health.supabase table=%s failed: %s", table, e)
            tables[table] = {"ok": False, "error": str(e)}
    info["tables"] = tables
    info["connect_ok"] = all(t["ok"] for t in tables.values())
    return info
