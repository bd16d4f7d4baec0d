"""FastAPI glue: build limiter keys from requests and turn denials into 429s."""
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, Response, status

from bpeople_ratelimit.config import settings
from bpeople_ratelimit.models import RateLimitPolicy, Verdict
from bpeople_ratelimit.policies import DEFAULT_POLICY
from bpeople_ratelimit.rate_limiter import RateLimiter

ANONYMOUS_CLIENT = "anonymous"


def client_identifier(request: Request, trust_forwarded_for: bool | None = None) -> str:
    """Extract the client IP, preferring the first X-Forwarded-For hop.

    The forwarded header is only trustworthy behind a reverse proxy that
    overwrites it; otherwise clients can rotate it to dodge their limit.
    """
    if trust_forwarded_for is None:
        trust_forwarded_for = settings.trust_forwarded_for
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded and forwarded.split(",")[0].strip():
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ANONYMOUS_CLIENT


def build_key(scope: str, client_id: str) -> str:
    return f"{scope}:{client_id}"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def rate_limit_headers(policy: RateLimitPolicy, verdict: Verdict) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(max(policy.limit, 0)),
        "X-RateLimit-Remaining": str(verdict.remaining),
        "X-RateLimit-Reset": str(verdict.reset_at_seconds),
    }


def rate_limit(scope: str, policy: RateLimitPolicy = DEFAULT_POLICY) -> Callable[..., Awaitable[Verdict]]:
    """Dependency factory: throttle a route by ``"<scope>:<client ip>"``.

    Usage::

        @router.get("/people", dependencies=[Depends(rate_limit("api:people:get", API))])
    """

    async def dependency(request: Request, response: Response) -> Verdict:
        limiter = get_rate_limiter(request)
        verdict = limiter.check(build_key(scope, client_identifier(request)), policy)
        headers = rate_limit_headers(policy, verdict)
        if not verdict.allowed:
            headers["Retry-After"] = str(verdict.retry_after_seconds)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers=headers,
            )
        response.headers.update(headers)
        return verdict

    return dependency
