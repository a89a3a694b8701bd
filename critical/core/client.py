from datetime import timedelta
from pathlib import Path

import requests_cache
import structlog
from requests.adapters import HTTPAdapter

logger = structlog.get_logger('client')


def get_http_client(
    user_agent: str,
    cache_name: str | None = None,
    expire_after: int = 3600,
    pool_size: int = 20,
) -> requests_cache.CachedSession:
    """
    Returns a requests session with caching and a pooled adapter.

    Responses are cached in memory unless `cache_name` points at a sqlite
    file. Failed requests are never retried here; callers decide.
    """
    if cache_name:
        Path(cache_name).parent.mkdir(parents=True, exist_ok=True)
        session = requests_cache.CachedSession(
            cache_name=cache_name,
            backend='sqlite',
            expire_after=timedelta(seconds=expire_after),
            allowable_codes=[200],
        )
    else:
        session = requests_cache.CachedSession(
            backend='memory',
            expire_after=timedelta(seconds=expire_after),
            allowable_codes=[200],
        )

    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'application/json',
    })

    def logging_hook(response, *args, **kwargs):
        if getattr(response, '_logged', False):
            return
        response._logged = True

        is_cached = getattr(response, 'from_cache', False)
        log_kwargs = {
            'method': response.request.method,
            'url': response.url,
            'status': response.status_code,
            'content_length': len(response.content) if response.content else 0,
            'elapsed': f"{response.elapsed.total_seconds():.3f}s",
            'cached': is_cached,
        }
        logger.debug('HTTP Request', **log_kwargs)
    session.hooks['response'].append(logging_hook)

    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=0,
    )
    session.mount('https://', adapter)
    session.mount('http://', adapter)

    logger.debug(
        'Initialized HTTP Client',
        cache_name=cache_name or 'memory',
        expire_after=expire_after,
    )

    return session
