import uvicorn

from .config import settings


def run() -> None:
    """Run the application with uvicorn."""
    uvicorn.run(
        "blog_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run()
