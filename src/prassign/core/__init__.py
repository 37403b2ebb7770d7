"""prassign core library: configuration, storage, routing engines and services."""
# Export main components
from . import config
from . import errors
from . import models
from . import routing
from . import schemas
from . import services
from . import storage

__all__ = [
    "config",
    "errors",
    "models",
    "routing",
    "schemas",
    "services",
    "storage",
]
