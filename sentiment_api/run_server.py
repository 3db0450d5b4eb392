from __future__ import annotations

import logging

import uvicorn

from sentiment_api.api import create_app
from sentiment_api.settings import load_settings


def main() -> None:
    s = load_settings()

    logging.basicConfig(
        level=s.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    app = create_app(settings=s)
    uvicorn.run(app, host=s.api_host, port=s.api_port, log_config=None)


if __name__ == "__main__":
    main()
