"""ASGI entrypoint.

    uvicorn staybook.api.app:app
or
    staybook-api            (console script, listens on $PORT)
"""

import uvicorn

from staybook.infra.config import Settings

from .factory import create_app

app = create_app()


def main() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
