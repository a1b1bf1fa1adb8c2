"""
Seed a demo seller and buyer with opening deposits.

    python init_account.py

Safe to re-run: opening deposits carry an idempotency key, so an account
whose deposit failed on an earlier run is topped up once.
"""
import asyncio
import logging

from marketplace.core.container import ApplicationContainer, get_container
from marketplace.core.logging import configure_logging
from marketplace.modules.accounts import AccountAlreadyExistsError

logger = logging.getLogger("init_account")

DEMO_ACCOUNTS = (
    ("demo_seller", 1000),
    ("demo_buyer", 500),
)


async def seed_demo_accounts(container: ApplicationContainer) -> None:
    for username, opening_cents in DEMO_ACCOUNTS:
        try:
            account = await container.accounts.register(username=username)
        except AccountAlreadyExistsError:
            account = await container.accounts.get_by_username(username)
            logger.info("Account %s already exists", username)
        balance = await container.ledger.deposit(
            account.id,
            opening_cents,
            idempotency_key=f"seed:{username}",
            description="Opening balance",
        )
        logger.info("Seeded %s (%s) with balance %s cents", username, account.id, balance)


async def create_demo_accounts() -> None:
    container = get_container()
    configure_logging(container.settings)
    await container.init_infrastructure()

    try:
        await seed_demo_accounts(container)
    finally:
        await container.shutdown()


if __name__ == "__main__":
    asyncio.run(create_demo_accounts())
