"""DevbrainAI MVI backend package."""

__version__ = "2.0.0"

from .app import create_app  # noqa: E402
from .config import get_settings  # noqa: E402

__all__ = ["__version__", "create_app", "get_settings"]
