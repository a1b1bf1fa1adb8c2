"""SQLAlchemy implementation for products."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import Product


class SqlProductRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_product(self, product_id: str) -> Product | None:
        stmt = select(Product).where(Product.id == product_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def add_product(
        self,
        *,
        product_id: str,
        seller_id: str,
        name: str,
        description: str | None,
        category: str,
        image_url: str | None,
        price_cents: int,
        stock: int,
        listing_fee_cents: int,
    ) -> Product:
        product = Product(
            id=product_id,
            seller_id=seller_id,
            name=name,
            description=description,
            category=category,
            image_url=image_url,
            price_cents=price_cents,
            stock=stock,
            listing_fee_cents=listing_fee_cents,
            is_reserved=False,
        )
        self.session.add(product)
        await self.session.flush()
        await self.session.refresh(product)
        return product

    async def list_products(self, seller_id: str | None, limit: int, offset: int) -> Sequence[Product]:
        stmt = select(Product)
        if seller_id:
            stmt = stmt.where(Product.seller_id == seller_id)
        stmt = stmt.order_by(desc(Product.created_at), Product.id).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def mark_reserved(self, product_id: str, *, account_id: str, reserved_at: datetime) -> bool:
        """Flip the reservation flag only if it is still clear; False means another reserver won."""
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.is_reserved.is_(False))
            .values(is_reserved=True, reserved_by=account_id, reserved_at=reserved_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def delete_product(self, product_id: str) -> None:
        stmt = delete(Product).where(Product.id == product_id).execution_options(synchronize_session=False)
        await self.session.execute(stmt)
