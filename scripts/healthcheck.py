"""
Container healthcheck for the photo relay.

Exit code 0 only when /health answers 200 with {"status": "ok"}. The Telegram side is
not probed: a healthy relay may still have an unreachable Bot API.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

import httpx


def health_url() -> str:
    host = os.getenv("HOST", "127.0.0.1")
    # Bind-all addresses are not valid client targets.
    if host in ("0.0.0.0", "::"):
        host = "127.0.0.1"
    port = os.getenv("PORT", "10000")
    prefix = os.getenv("API_PREFIX", "").rstrip("/")
    return f"http://{host}:{port}{prefix}/health"


def probe(url: str, client: Optional[httpx.Client] = None, timeout: float = 2.0) -> bool:
    own_client = client is None
    client = client or httpx.Client(timeout=timeout)
    try:
        resp = client.get(url)
        if resp.status_code != 200:
            print(f"unhealthy: HTTP {resp.status_code}", file=sys.stderr)
            return False
        body = resp.json()
        status = body.get("status") if isinstance(body, dict) else None
        if status != "ok":
            print(f"unhealthy: status={status!r}", file=sys.stderr)
            return False
        return True
    except (httpx.HTTPError, ValueError) as e:
        print(f"unhealthy: {e}", file=sys.stderr)
        return False
    finally:
        if own_client:
            client.close()


def main() -> int:
    return 0 if probe(health_url()) else 1


if __name__ == "__main__":
    raise SystemExit(main())
