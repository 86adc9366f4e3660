"""
Runs the API with uvicorn: `python -m orbitfund` or `orbitfund-api`.
"""
import uvicorn

from .config import settings


def main():
    uvicorn.run(
        "orbitfund.app:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
