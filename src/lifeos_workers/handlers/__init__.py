# Import all handlers so they register themselves.
from . import daily_rollup  # noqa: F401
