"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from marketplace.core.config import Settings, get_settings
from marketplace.infrastructure.database.session import build_session_factory, get_engine, init_db
from marketplace.modules.accounts import AccountService
from marketplace.modules.ledger import LedgerService
from marketplace.modules.support import AutomatedResponder, KeywordResponder, SupportService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    accounts: AccountService
    ledger: LedgerService
    support: SupportService

    @classmethod
    def build(
        cls,
        settings: Settings,
        engine: AsyncEngine,
        *,
        responder: AutomatedResponder | None = None,
    ) -> "ApplicationContainer":
        session_factory = build_session_factory(engine)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            accounts=AccountService(session_factory),
            ledger=LedgerService.from_settings(session_factory, settings.ledger),
            support=SupportService(
                session_factory,
                responder=responder or KeywordResponder(),
                settings=settings.support,
            ),
        )

    async def init_infrastructure(self) -> None:
        """Create missing tables (migrations preferred outside development)."""
        await init_db(self.engine)

    async def shutdown(self) -> None:
        await self.engine.dispose()


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer.build(get_settings(), get_engine())


__all__ = ["ApplicationContainer", "get_container"]
