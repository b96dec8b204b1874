"""Application entry point for the check-in API server."""

import uvicorn
from dotenv import load_dotenv

from checkin.utils.config import load_config
from checkin.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server."""
    load_dotenv()
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run("checkin.api.app:app", host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
