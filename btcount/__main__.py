"""Run the service with uvicorn: ``python -m btcount``"""

import uvicorn

from btcount.config import settings


def main() -> None:
    uvicorn.run(
        "btcount.api.main:app",
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,  # Keep the JSON handler installed by setup_logging
    )


if __name__ == "__main__":
    main()
