"""
Entry point for the Usuarios Registry API
"""

import sys
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from config.settings import get_settings  # noqa: E402

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Import the FastAPI application once settings and logging are in place
from app import app  # noqa: E402

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Usuarios Registry API on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
