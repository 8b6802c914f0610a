import uvicorn

from constants import HOST, PORT, RELOAD
from logging_config import get_logger

# Importing the app configures logging
from app import app

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info(f"Starting chat server on {HOST}:{PORT}")
    if RELOAD:
        # Reload needs an import string so the worker can re-import the app
        uvicorn.run("app:app", host=HOST, port=PORT, reload=True)
    else:
        uvicorn.run(app, host=HOST, port=PORT)
