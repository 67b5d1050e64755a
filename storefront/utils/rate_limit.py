from typing import Any, Dict
from urllib.parse import urlparse
import logging
import time

from fastapi import HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

logger = logging.getLogger(__name__)

# module storefront.utils.rate_limit


def _client_key(req: Request) -> str:
    # IP vue par le serveur + chemin. Derrière un proxy, uvicorn (proxy_headers,
    # FORWARDED_ALLOW_IPS) réécrit client.host; X-Forwarded-For brut n'est jamais lu.
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{req.url.path}"


def _settings_flag(request: Request, name: str) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(getattr(settings, name, False))


def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de rate limiting tolérante:
    - LOCAL_RATE_LIMIT_FALLBACK: fenêtre glissante en mémoire (app.state._rl_store)
    - rate limiting désactivé au démarrage: laisse passer
    - sinon fastapi-limiter (Redis); une erreur du limiteur laisse passer
    """
    async def _dep(request: Request, response: Response):
        if _settings_flag(request, "local_rate_limit_fallback"):
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        async def _identifier(req: Request) -> str:
            return _client_key(req)

        try:
            limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)
            return await limiter(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible (ex: SCRIPT non supporté): pas de 429
            logger.warning("rate limiter unavailable path=%s: %s", request.url.path, e)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None
    if _settings_flag(request, "local_rate_limit_fallback"):
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }

    settings = getattr(request.app.state, "settings", None)
    redis_url = getattr(settings, "rate_limit_redis_url", "")
    if backend == "redis" and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
