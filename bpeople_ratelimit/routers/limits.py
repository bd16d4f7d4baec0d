"""Read-only API exposing the named rate-limit presets."""
from fastapi import APIRouter, Depends, HTTPException, Path, status

from bpeople_ratelimit.guard import rate_limit
from bpeople_ratelimit.models import PolicyResponse
from bpeople_ratelimit.policies import API, RATE_LIMITS, UnknownPolicyError, get_policy

router = APIRouter(prefix="/api/rate-limits")


@router.get("", dependencies=[Depends(rate_limit("api:rate-limits:list", API))])
async def list_policies() -> list[PolicyResponse]:
    return [PolicyResponse(name=name, **policy.model_dump()) for name, policy in RATE_LIMITS.items()]


@router.get("/{name}", dependencies=[Depends(rate_limit("api:rate-limits:get", API))])
async def read_policy(name: str = Path(max_length=64)) -> PolicyResponse:
    try:
        policy = get_policy(name)
    except UnknownPolicyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown rate-limit policy")
    return PolicyResponse(name=name, **policy.model_dump())
