"""
WSGI Entry Point for Production Deployment

    gunicorn -w 4 -b 0.0.0.0:5000 wsgi:application
"""

import os
import logging

from app import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

os.environ.setdefault("FLASK_ENV", "production")

application = create_app(os.environ["FLASK_ENV"])
logger.info(f"Flask application successfully loaded: {application.name}")

if __name__ == "__main__":
    logger.info("Starting Flask development server")
    application.run(
        host=application.config["HOST"],
        port=application.config["PORT"],
        debug=False,
    )
