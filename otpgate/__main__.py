"""Run the API server: python -m otpgate."""

import uvicorn

from otpgate.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "otpgate.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
