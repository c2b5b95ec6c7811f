import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from smsoutbox.infrastructure.http.client import (
    close_http_client,
    open_http_client,
)
from smsoutbox.infrastructure.outbox.runtime import build_outbox
from smsoutbox.logging import setup_logging
from smsoutbox.presentation.api import api
from smsoutbox.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    client = await open_http_client()

    # ONE outbox per process; every request and callback shares it
    runtime = build_outbox(settings, client=client, loop=asyncio.get_running_loop())
    app.state.runtime = runtime  # expose to dependencies

    try:
        yield
    finally:
        # shutdown
        await runtime.aclose()  # it won't close the shared client
        await close_http_client()  # closes the shared client


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="SMS Outbox", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
