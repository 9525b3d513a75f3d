import uvicorn

from .providers import get_settings


def main():
    settings = get_settings()
    uvicorn.run("catalog.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
