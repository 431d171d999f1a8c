from fastapi import APIRouter, Depends

from ....domain.models import Identity
from ...api.dependencies import require_identity
from ...api.schemas.auth import IdentityResponse

router = APIRouter(prefix="/api", tags=["Session"])


@router.get("/me", response_model=IdentityResponse)
async def get_identity(identity: Identity = Depends(require_identity)) -> IdentityResponse:
    """Identity asserted by the bearer session token."""
    return IdentityResponse(user=identity.to_dict())
