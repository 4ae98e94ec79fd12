"""Run the proxy with uvicorn: ``python -m app``."""
import uvicorn

from app.core.config import get_settings


def main() -> None:
    settings = get_settings().validate_required()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
