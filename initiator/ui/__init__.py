from .status import IndicatorPanel, StatusSurface

__all__ = ["IndicatorPanel", "StatusSurface"]
