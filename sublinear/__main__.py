"""``python -m sublinear`` runs the dev server."""

import logging


def main() -> None:
    import uvicorn

    from .core.config import get_settings
    from .core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logging.getLogger("sublinear").warning(
        "sublinear listening on http://%s:%s (NOT FOR PRODUCTION USE)", settings.HOST, settings.PORT
    )
    uvicorn.run("sublinear.main:app", host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
