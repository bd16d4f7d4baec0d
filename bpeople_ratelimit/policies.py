"""Named rate-limit presets for the API's endpoint classes."""
from bpeople_ratelimit.models import RateLimitPolicy

# 60 req/min for callers that don't pick a preset.
DEFAULT_POLICY = RateLimitPolicy(limit=60, window_ms=60_000)

# Login and credential endpoints: slow enough to make password guessing impractical.
AUTH = RateLimitPolicy(limit=10, window_ms=900_000)      # 10 req / 15 min
API = RateLimitPolicy(limit=100, window_ms=60_000)       # 100 req / min
EXPORT = RateLimitPolicy(limit=20, window_ms=300_000)    # 20 req / 5 min
WEBHOOK = RateLimitPolicy(limit=50, window_ms=60_000)    # 50 req / min

RATE_LIMITS: dict[str, RateLimitPolicy] = {
    "auth": AUTH,
    "api": API,
    "export": EXPORT,
    "webhook": WEBHOOK,
}


class UnknownPolicyError(KeyError):
    """Raised when a preset name is not in RATE_LIMITS."""


def get_policy(name: str) -> RateLimitPolicy:
    try:
        return RATE_LIMITS[name]
    except KeyError:
        raise UnknownPolicyError(name) from None
