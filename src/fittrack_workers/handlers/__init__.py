# Import all handlers so they register themselves.
from . import historical_1rm  # noqa: F401
from .router import dispatch  # noqa: F401
