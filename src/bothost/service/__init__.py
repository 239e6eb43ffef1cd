"""Orchestration facade and daemon entry point."""

from bothost.service.orchestrator import BotOrchestrator

__all__ = ["BotOrchestrator"]
