"""Game event logging package."""

from dreamspend.audit.logger import EventListener, GameEventLogger

__all__ = ["EventListener", "GameEventLogger"]
