import hashlib
import hmac
import time
from typing import Tuple
from urllib.parse import urlencode, quote


def sign_path(path: str, expires: int, secret: str) -> str:
    value = f"{path}:{expires}"
    return hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def signed_report_url(base_url: str, path: str, secret: str, ttl: int, now: float = None) -> Tuple[str, int]:
    """Build a download link for ``path`` valid for ``ttl`` seconds; returns (url, expires_epoch)."""
    expires = int(now if now is not None else time.time()) + int(ttl)
    query = urlencode({"expires": expires, "signature": sign_path(path, expires, secret)})
    return f"{base_url.rstrip('/')}/{quote(path.lstrip('/'))}?{query}", expires
