import uvicorn
from tabprep.config import settings
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)


def start():
    """
    Main entry point to start the preprocessing API server.
    Reads configuration from settings.py.
    """
    logger.info("=" * 50)
    logger.info(f"STARTING {settings.APP_NAME}")
    logger.info(f"Version: {settings.APP_VERSION}")
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Row cap per upload: {settings.MAX_PREPROCESS_ROWS}")
    logger.info("=" * 50)

    try:
        uvicorn.run(
            "tabprep.api.routes:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.DEBUG,
            log_level=settings.LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
    except Exception as e:
        logger.error(f"Failed to start server: {str(e)}")
        raise


if __name__ == "__main__":
    start()
