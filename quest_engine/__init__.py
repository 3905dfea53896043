"""quest-engine: progression rules engine for task gamification"""

__version__ = "0.1.0"
