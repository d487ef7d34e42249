import uvicorn

from appconfig import BASE_DIR, get_settings
from logging_config import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "api:app",
        host=settings.host,
        port=settings.port,
        app_dir=str(BASE_DIR),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
