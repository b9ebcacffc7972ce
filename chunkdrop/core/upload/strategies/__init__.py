"""Upload strategies module."""
from .chunking import BaseChunkingStrategy, FixedSizeChunkingStrategy
from .selector import select_strategy, create_plan, plan_for_entry

__all__ = [
    'BaseChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'select_strategy',
    'create_plan',
    'plan_for_entry',
]
