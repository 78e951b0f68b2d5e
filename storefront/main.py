"""Storefront entrypoints."""

import asyncio

import uvicorn


def cli() -> None:
    """CLI entrypoint."""
    uvicorn.run("storefront.web.app:create_app", factory=True, reload=True)


def seed_cli() -> None:
    """Create the schema and load demo tenants and users."""
    from storefront.config.logging import setup_logging
    from storefront.config.settings import get_settings
    from storefront.storage.database import get_engine, init_db
    from storefront.storage.seed import seed_demo_data

    setup_logging(log_level=get_settings().log_level)

    async def _run() -> None:
        engine = get_engine()
        await init_db(engine)
        await seed_demo_data(engine)
        await engine.dispose()

    asyncio.run(_run())


if __name__ == "__main__":
    cli()
