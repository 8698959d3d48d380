from .speaker import Speaker

__all__ = ["Speaker"]
