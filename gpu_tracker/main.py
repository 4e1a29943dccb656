from .core.config import settings
from .core.logging import configure_logging
from . import create_app

configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
app = create_app(settings)
