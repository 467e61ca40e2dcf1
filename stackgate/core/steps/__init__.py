"""Gate steps"""
from stackgate.core.steps.command_step import CommandStep

__all__ = ["CommandStep"]
