from __future__ import annotations

import os

import uvicorn


def main() -> None:
    from facility_api.config import load_settings
    from facility_api.telemetry import configure_logging

    settings = load_settings()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run("facility_api.app:app", host=settings.API_HOST, port=settings.API_PORT, reload=False)


if __name__ == "__main__":
    main()
