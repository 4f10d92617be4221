from .engine import make_engine

__all__ = ["make_engine"]
