import logging
import logging.config
import os
from pathlib import Path

LOGGING_CONF = Path(os.getenv("LOGGING_CONF", Path(__file__).resolve().parent.parent / "logging.conf"))

if LOGGING_CONF.exists():
    # Ensure logs directory exists
    os.makedirs("logs", exist_ok=True)
    logging.config.fileConfig(LOGGING_CONF, disable_existing_loggers=False)
else:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


logger = logging.getLogger("manuorder")
