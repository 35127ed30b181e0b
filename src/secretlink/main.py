# configure logging before other app modules import libraries that may log during import
from .logging_config import configure_logging, get_logger

configure_logging()

from . import composition  # noqa: E402
from .config import settings  # noqa: E402
from .wiring import create_app  # noqa: E402

logger = get_logger(__name__)

app = create_app(settings)


@app.on_event("startup")
async def on_startup():
    await composition.wire_app(app, settings)


@app.on_event("shutdown")
async def on_shutdown():
    teardown = getattr(app.state, "teardown", None)
    if teardown is not None:
        await teardown()
    logger.info("shutdown_complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("secretlink.main:app", host=settings.server_host, port=settings.server_port)
