"""FastAPI routes for customer lookup."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cakeout.api.deps import api_error_to_http, require_token
from cakeout.errors import APIError
from cakeout.schemas import Customer
from cakeout.services.api_client import CakeOutClient

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/search", response_model=list[Customer])
async def search_customers(
    token: Annotated[str, Depends(require_token)],
    q: Annotated[str, Query(min_length=1, description="Name fragment to match")],
) -> list[Customer]:
    """Search customers by name on the invoicing backend."""
    try:
        async with CakeOutClient(token=token) as client:
            return await client.search_customers(q)
    except APIError as e:
        raise api_error_to_http(e) from e
