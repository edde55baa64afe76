"""
Game configuration settings.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from redmonopoly.settings import EngineSettings


@dataclass
class GameConfig:
    """Configuration for a game of Soviet Monopoly."""

    starting_rubles: int = 1500

    stoy_travel_tax: int = 200
    pilfer_amount: int = 100
    pilfer_dice_threshold: int = 4

    gulag_escape_cost: int = 500
    gulag_timeout_turns: int = 10
    voucher_rounds: int = 3
    inform_penalty_turns: int = 2
    bribe_minimum: int = 200

    informant_bonus: int = 100
    three_doubles_threshold: int = 3

    breadline_contribution: int = 50
    revolutionary_contribution_rate: float = 0.15

    improvement_cost: int = 100
    palace_improvement_cost: int = 200
    improvement_value: int = 50
    unmortgage_interest_rate: float = 0.10

    five_year_plan_bonus: int = 100
    hero_rounds: int = 3

    max_log_events: Optional[int] = None

    seed: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Optional["EngineSettings"] = None, **overrides) -> "GameConfig":
        """Build a config from environment-backed engine settings."""
        if settings is None:
            from redmonopoly.settings import get_engine_settings

            settings = get_engine_settings()
        values = {
            "starting_rubles": settings.starting_rubles,
            "max_log_events": settings.max_log_events,
            "seed": settings.seed,
        }
        values.update(overrides)
        return cls(**values)
