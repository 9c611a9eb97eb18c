import uvicorn

from memguard.config import settings
from memguard.main import create_app


def main() -> None:
    uvicorn.run(create_app(), host=settings.app.host, port=settings.app.port, log_config=None)


if __name__ == "__main__":
    main()
