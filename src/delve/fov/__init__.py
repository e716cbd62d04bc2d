from .visibility import VISION_RADIUS, FogTileState, VisibilityEngine, visible_positions

__all__ = ["VISION_RADIUS", "FogTileState", "VisibilityEngine", "visible_positions"]
