"""
Strategy registry — maps template strategy names to strategy classes.

The set is closed: templates pick one of StrategyType, and anything else
falls back to the default strategy.
"""

import enum
import logging
from typing import Optional

from .base import BaseStrategy
from .default import DefaultStrategy
from .industrial import IndustrialStrategy
from .service import ServiceStrategy

logger = logging.getLogger(__name__)


class StrategyType(str, enum.Enum):
    DEFAULT = "default"
    INDUSTRIAL = "industrial"
    SERVICE = "service"


STRATEGY_REGISTRY: dict[StrategyType, type] = {
    StrategyType.DEFAULT: DefaultStrategy,
    StrategyType.INDUSTRIAL: IndustrialStrategy,
    StrategyType.SERVICE: ServiceStrategy,
}


def resolve_strategy_type(name: Optional[str]) -> StrategyType:
    """Strategy name from template metadata -> StrategyType, defaulting when absent or unknown."""
    if not name:
        return StrategyType.DEFAULT
    try:
        return StrategyType(str(name).strip().lower())
    except ValueError:
        logger.info("Unknown strategy %r, falling back to default", name)
        return StrategyType.DEFAULT


def get_strategy(name: Optional[str]) -> BaseStrategy:
    """Returns an instance of the strategy for a name (default when unrecognized)."""
    return STRATEGY_REGISTRY[resolve_strategy_type(name)]()


def list_strategies() -> list[str]:
    """List all registered strategy names."""
    return [strategy_type.value for strategy_type in StrategyType]
