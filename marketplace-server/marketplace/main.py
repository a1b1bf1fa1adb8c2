from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace import __version__
from marketplace.api import create_api_router
from marketplace.api.errors import marketplace_error_handler
from marketplace.core.config import get_settings
from marketplace.core.container import ApplicationContainer, get_container
from marketplace.core.logging import configure_logging
from marketplace.modules.common.exceptions import MarketplaceError


def create_app(container: ApplicationContainer | None = None) -> FastAPI:
    container = container or get_container()
    settings = container.settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.init_infrastructure()
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.project_name,
        description="Marketplace balance ledger and support escalation service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("marketplace.main:app", host=settings.host, port=settings.port, reload=settings.server.reload)
