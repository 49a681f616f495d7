from src.shared.utils.datetime import ensure_utc
from src.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "ensure_utc",
]
