"""Entry point for serving the account API with uvicorn."""
import uvicorn

from account_api.app import create_app
from account_api.core.config import get_settings

__all__ = ["create_app", "main"]


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "account_api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=60,
    )


if __name__ == "__main__":
    main()
