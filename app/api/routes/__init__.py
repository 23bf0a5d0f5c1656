from . import songs

__all__ = ["songs"]
