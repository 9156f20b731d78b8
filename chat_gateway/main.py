import uvicorn

from chat_gateway.core.app_factory import create_app
from chat_gateway.core.config import settings

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host/port."""
    uvicorn.run(app, host=settings.app.host, port=settings.app.port, log_config=None)


if __name__ == "__main__":
    run()
