"""
Point d'entrée principal du backend de la boutique.

Usage:
    python -m storefront

Lance uvicorn directement et lit quelques variables d'environnement:
- PORT: port d'écoute (par défaut 4242)
- UVICORN_RELOAD: active le reload auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau de logs uvicorn (ex: "info", "debug")
- FORWARDED_ALLOW_IPS: proxies dont les en-têtes X-Forwarded-* sont crus (défaut 127.0.0.1)
"""
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 4242))
    # Activer le reload uniquement si explicitement demandé (ex: en local)
    reload_flag = os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes")
    log_level = os.environ.get("LOG_LEVEL", "info")
    uvicorn.run(
        "storefront.asgi:app",
        host="0.0.0.0",
        port=port,
        reload=reload_flag,
        proxy_headers=True,
        forwarded_allow_ips=os.environ.get("FORWARDED_ALLOW_IPS", "127.0.0.1"),
        log_level=log_level,
    )
