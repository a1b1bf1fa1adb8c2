"""Product listing and reservation endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Path, Query, Response, status

from marketplace.api.deps import get_ledger_service
from marketplace.core.security import get_current_account
from marketplace.modules.accounts import Account as AccountDomain
from marketplace.modules.ledger import LedgerService
from marketplace.schemas import ProductCreateRequest, ProductListResponse, ProductResponse

router = APIRouter()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED, summary="List a product")
async def create_product(
    payload: ProductCreateRequest,
    idempotency_key: str | None = Header(default=None),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> ProductResponse:
    product = await ledger.list_product(
        account.id,
        payload.model_dump(exclude_none=True),
        idempotency_key=idempotency_key,
    )
    return ProductResponse.model_validate(product)


@router.get("", response_model=ProductListResponse, summary="Browse products")
async def list_products(
    seller_id: str | None = None,
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    ledger: LedgerService = Depends(get_ledger_service),
) -> ProductListResponse:
    products = await ledger.list_products(seller_id, limit, offset)
    return ProductListResponse(products=[ProductResponse.model_validate(product) for product in products])


@router.get("/{product_id}", response_model=ProductResponse, summary="Product details")
async def get_product(
    product_id: str = Path(..., description="Product ID"),
    ledger: LedgerService = Depends(get_ledger_service),
) -> ProductResponse:
    return ProductResponse.model_validate(await ledger.get_product(product_id))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove own product")
async def delete_product(
    product_id: str = Path(..., description="Product ID"),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> Response:
    await ledger.delist_product(account.id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{product_id}/reservation", response_model=ProductResponse, summary="Reserve a product")
async def reserve_product(
    product_id: str = Path(..., description="Product ID"),
    idempotency_key: str | None = Header(default=None),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> ProductResponse:
    product = await ledger.reserve_product(account.id, product_id, idempotency_key=idempotency_key)
    return ProductResponse.model_validate(product)
