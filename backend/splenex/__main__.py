"""
Module entry point for running the application.
"""
import uvicorn

from .core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "splenex.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
