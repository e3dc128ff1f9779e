"""API routes."""

from brain_battle.api.routes import notes

__all__ = ["notes"]
