from .mapper import Viewport, ViewportMapper

__all__ = ["Viewport", "ViewportMapper"]
