import asyncio
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx

DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRIES = 0
DEFAULT_BACKOFF = 0.2


@dataclass(frozen=True)
class HttpResult:
    """A completed exchange: the status code and the decoded response body."""
    status: int
    text: str


def normalize_http_config(cfg: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Returns a copy of `cfg` with defaults filled in and values coerced.

    Recognized keys: timeout, retries, backoff, headers, follow-redirects.
    """
    cfg = dict(cfg or {})
    return {
        'timeout': float(cfg.get('timeout', DEFAULT_TIMEOUT)),
        'retries': int(cfg.get('retries', DEFAULT_RETRIES)),
        'backoff': float(cfg.get('backoff', DEFAULT_BACKOFF)),
        'headers': {str(k): str(v) for k, v in dict(cfg.get('headers') or {}).items()},
        'follow-redirects': bool(cfg.get('follow-redirects', False)),
    }


async def http_request(method: str, url: str, *, data: Optional[str] = None,
                       config: Optional[Dict] = None) -> Optional[HttpResult]:
    """
    Perform one request and report what came back.

    Every status code is a result; only transport problems (bad URL, refused
    connection, timeout) yield None, after `retries` further attempts with
    exponential backoff.
    """
    cfg = normalize_http_config(config)
    headers = dict(cfg['headers'])
    body = data.encode('utf-8') if data is not None else None
    if body is not None and not any(k.lower() == 'content-type' for k in headers):
        headers["Content-Type"] = "text/plain; charset=utf-8"

    async with httpx.AsyncClient(timeout=cfg['timeout'], follow_redirects=cfg['follow-redirects']) as client:
        for attempt in range(cfg['retries'] + 1):
            try:
                resp = await client.request(
                    method.upper(),
                    url,
                    headers=headers,
                    content=body,
                )
                return HttpResult(int(resp.status_code), resp.text or "")
            except (httpx.HTTPError, httpx.InvalidURL, ValueError):
                if attempt < cfg['retries']:
                    await asyncio.sleep(cfg['backoff'] * (2 ** attempt))
                    continue
    return None
