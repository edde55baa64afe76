"""
State Treasury and narrative event logging.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    ROUND_START = "round_start"
    TURN_START = "turn_start"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_STOY = "pass_stoy"
    LAND = "land"

    PURCHASE = "purchase"
    PURCHASE_BLOCKED = "purchase_blocked"
    QUOTA_PAYMENT = "quota_payment"
    TAX_PAYMENT = "tax_payment"
    PILFER = "pilfer"
    BREADLINE = "breadline"

    CARD_DRAW = "card_draw"

    COLLECTIVIZE = "collectivize"
    SELL_COLLECTIVIZATION = "sell_collectivization"
    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"
    TRANSFER = "transfer"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_CANCELLED = "trade_cancelled"
    TRADE_FAILED = "trade_failed"

    DEBT_CREATED = "debt_created"
    DEBT_PAID = "debt_paid"
    DEBT_DEFAULT = "debt_default"

    GULAG_ENTRY = "gulag_entry"
    GULAG_BLOCKED = "gulag_blocked"
    GULAG_REDIRECT = "gulag_redirect"
    GULAG_TURN = "gulag_turn"
    GULAG_ESCAPE_ATTEMPT = "gulag_escape_attempt"
    GULAG_RELEASE = "gulag_release"
    BRIBE = "bribe"
    INFORM = "inform"
    CONFESSION = "confession"

    VOUCHER_CREATED = "voucher_created"
    VOUCHER_EXPIRED = "voucher_expired"
    VOUCHER_CONSEQUENCE = "voucher_consequence"

    TRIBUNAL_START = "tribunal_start"
    TRIBUNAL_PHASE = "tribunal_phase"
    WITNESS = "witness"
    VERDICT = "verdict"

    RANK_CHANGE = "rank_change"
    ABILITY_USED = "ability_used"
    TREASURY = "treasury"

    GREAT_PURGE = "great_purge"
    FIVE_YEAR_PLAN = "five_year_plan"
    HERO = "hero"

    ELIMINATION = "elimination"
    END_VOTE = "end_vote"
    GAME_END = "game_end"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[int] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        player_str = f"P{self.player_id}" if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.message or self.details}"


class EventLog:
    """Append-only narrative log of the game."""

    def __init__(self, max_events: Optional[int] = None):
        self.events: List[GameEvent] = []
        self.max_events = max_events

    def log(
        self,
        event_type: EventType,
        player_id: Optional[int] = None,
        message: str = "",
        **details: Any,
    ) -> None:
        """Log a game event."""
        self.events.append(GameEvent(event_type, player_id, message, details))
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

    def get_events(self, event_type: Optional[EventType] = None) -> List[GameEvent]:
        """Get all logged events, optionally of a single type."""
        if event_type is None:
            return self.events.copy()
        return [e for e in self.events if e.event_type == event_type]

    def get_recent_events(self, count: int = 10) -> List[GameEvent]:
        """Get the most recent N events."""
        return self.events[-count:]

    def clear(self) -> None:
        """Clear the event log."""
        self.events.clear()


class Treasury:
    """
    The State Treasury.
    Its balance can never go below zero; a withdrawal beyond the balance
    simply empties it.
    """

    def __init__(self, balance: int = 0):
        self.balance = max(0, balance)

    def adjust(self, amount: int) -> int:
        """Apply a signed adjustment and return the new balance."""
        self.balance = max(0, self.balance + amount)
        return self.balance

    def __repr__(self) -> str:
        return f"Treasury(balance={self.balance})"
