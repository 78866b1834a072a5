import logging

from toolchat.configuration.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# LiteLLM attaches its own handlers and also propagates, which doubles every line
_LITELLM_LOGGERS = ["LiteLLM", "LiteLLM Router", "LiteLLM Proxy"]


def configure_logging(settings: Settings) -> None:
    """Install the root handler and quiet noisy third-party loggers."""
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)
    for name in _LITELLM_LOGGERS:
        logging.getLogger(name).propagate = False
    logging.getLogger("httpx").setLevel(logging.WARNING)
