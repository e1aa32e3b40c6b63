# settings.py
import os


# Backend selection. Read once at import; `get_backend()` also accepts an explicit name.
BACKEND = os.getenv("NCURL_BACKEND", "curl").strip().lower()

# Credential fallbacks
USERNAME_ENV = "NCURL_USER"
PASSWORD_ENV = "NCURL_PASSWORD"

# Proxy fallbacks, checked in order. First non-empty value wins.
PROXY_ENV = (
    "HTTPS_PROXY",
    "HTTP_PROXY",
    "ALL_PROXY",
    "https_proxy",
    "http_proxy",
    "all_proxy",
)
NO_PROXY_ENV = ("NO_PROXY", "no_proxy")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0"
)
