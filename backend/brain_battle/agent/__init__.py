"""Multi-agent study notes pipeline."""

from brain_battle.agent.orchestrator import NotesOrchestrator, get_orchestrator

__all__ = ["NotesOrchestrator", "get_orchestrator"]
