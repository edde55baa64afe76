"""
Shared game-state container and record registries.

There is exactly one ``GameState`` per match. Services hold a reference to it
and never cache records: every read goes through a registry and every write
replaces a whole record.
"""

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from redmonopoly.board import Board
from redmonopoly.cards import Deck, DeckType, create_communist_test_deck, create_party_directive_deck
from redmonopoly.config import GameConfig
from redmonopoly.money import EventLog, Treasury
from redmonopoly.pending import PendingAction
from redmonopoly.player import PlayerState, PropertyState


class TurnPhase(Enum):
    """Phases of a single turn."""

    PRE_ROLL = "pre-roll"
    ROLLING = "rolling"
    MOVING = "moving"
    RESOLVING = "resolving"
    AWAITING_INPUT = "awaiting-input"
    POST_TURN = "post-turn"


class GamePhase(Enum):
    PLAYING = "playing"
    ENDED = "ended"


class GameEndCondition(Enum):
    SURVIVOR = "survivor"
    STALIN_WINS = "stalinWins"
    UNANIMOUS = "unanimous"


class TribunalPhase(Enum):
    """Tribunal phases in the order they are advanced."""

    ACCUSATION = "accusation"
    DEFENCE = "defence"
    WITNESSES = "witnesses"
    JUDGEMENT = "judgement"


TRIBUNAL_PHASE_ORDER: Tuple[TribunalPhase, ...] = tuple(TribunalPhase)


class WitnessSide(Enum):
    FOR_ACCUSER = "forAccuser"
    FOR_ACCUSED = "forAccused"


@dataclass(frozen=True)
class WitnessRequirement:
    """Either a minimum number of for-accuser witnesses, or unanimity."""

    count: int = 0
    unanimous: bool = False

    @property
    def is_zero(self) -> bool:
        return self.count == 0 and not self.unanimous


@dataclass(frozen=True)
class Tribunal:
    """The single active tribunal."""

    accuser_id: int
    accused_id: int
    crime: str
    requirement: WitnessRequirement
    phase: TribunalPhase = TribunalPhase.ACCUSATION
    witnesses_for: Tuple[int, ...] = ()
    witnesses_against: Tuple[int, ...] = ()


@dataclass(frozen=True)
class VoucherAgreement:
    """A free player's liability for a released prisoner."""

    prisoner_id: int
    voucher_id: int
    expires_at_round: int
    is_active: bool = True


@dataclass(frozen=True)
class Confession:
    """A prisoner's written confession awaiting, or after, Stalin's review."""

    prisoner_id: int
    text: str
    submitted_round: int
    reviewed: bool = False
    accepted: bool = False


class TradeStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TradeOffer:
    """One side of a trade: rubles, properties and Gulag release cards."""

    rubles: int = 0
    properties: FrozenSet[int] = frozenset()
    gulag_cards: int = 0

    def is_empty(self) -> bool:
        return self.rubles == 0 and not self.properties and self.gulag_cards == 0

    def __repr__(self) -> str:
        items = []
        if self.rubles > 0:
            items.append(f"{self.rubles} rubles")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        if self.gulag_cards > 0:
            items.append(f"{self.gulag_cards} Gulag cards")
        return " + ".join(items) if items else "nothing"


@dataclass(frozen=True)
class Trade:
    """
    A proposed exchange between two players. ``proposer_offer`` is what the
    proposer hands over, ``recipient_offer`` what they want in return.
    """

    trade_id: int
    proposer_id: int
    recipient_id: int
    proposer_offer: TradeOffer
    recipient_offer: TradeOffer
    proposed_round: int
    status: TradeStatus = TradeStatus.PENDING


@dataclass(frozen=True)
class GreatPurge:
    """Votes cast so far, voter id -> target id."""

    votes: Tuple[Tuple[int, int], ...] = ()

    def vote_map(self) -> Dict[int, int]:
        return dict(self.votes)


@dataclass(frozen=True)
class FiveYearPlan:
    target: int
    started_round: int
    collected: int = 0

    @property
    def is_met(self) -> bool:
        return self.collected >= self.target


@dataclass(frozen=True)
class HeroAward:
    """Hero of the Soviet Union status, held while ``expires_at_round`` is ahead."""

    player_id: int
    granted_at_round: int
    expires_at_round: int


class PlayerRegistry:
    """Canonical player records, kept in seating order."""

    def __init__(self, players: List[PlayerState]):
        self._records: Dict[int, PlayerState] = {p.player_id: p for p in players}
        self.order: List[int] = [p.player_id for p in players]

    def get(self, player_id: Optional[int]) -> Optional[PlayerState]:
        if player_id is None:
            return None
        return self._records.get(player_id)

    def update(self, player_id: int, **changes) -> Optional[PlayerState]:
        """Replace the freshest record for ``player_id`` with an updated copy."""
        current = self._records.get(player_id)
        if current is None:
            return None
        updated = replace(current, **changes)
        self._records[player_id] = updated
        return updated

    def put(self, record: PlayerState) -> None:
        self._records[record.player_id] = record

    def all(self) -> List[PlayerState]:
        return [self._records[pid] for pid in self.order]

    def active(self) -> List[PlayerState]:
        """Players still in the game, excluding Stalin."""
        return [p for p in self.all() if p.is_active]

    def stalin(self) -> Optional[PlayerState]:
        return next((p for p in self.all() if p.is_stalin), None)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._records

    def __iter__(self) -> Iterator[PlayerState]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._records)


class PropertyRegistry:
    """Canonical property records keyed by board position."""

    def __init__(self, properties: List[PropertyState]):
        self._records: Dict[int, PropertyState] = {p.space_id: p for p in properties}

    def get(self, space_id: int) -> Optional[PropertyState]:
        return self._records.get(space_id)

    def update(self, space_id: int, **changes) -> Optional[PropertyState]:
        current = self._records.get(space_id)
        if current is None:
            return None
        updated = replace(current, **changes)
        self._records[space_id] = updated
        return updated

    def put(self, record: PropertyState) -> None:
        self._records[record.space_id] = record

    def all(self) -> List[PropertyState]:
        return [self._records[sid] for sid in sorted(self._records)]

    def owned_by(self, player_id: int) -> List[PropertyState]:
        return [p for p in self.all() if p.custodian_id == player_id]

    def in_positions(self, positions: List[int]) -> List[PropertyState]:
        return [self._records[pos] for pos in positions if pos in self._records]

    def __contains__(self, space_id: object) -> bool:
        return space_id in self._records

    def __len__(self) -> int:
        return len(self._records)


class GameState:
    """
    The complete mutable state of one match.

    Holds the registries, treasury, decks, turn bookkeeping, the pending
    action, vouchers, open trades, Stalin's running decrees and the active
    tribunal. Contains no rules logic.
    """

    def __init__(self, config: GameConfig, players: List[PlayerState]):
        self.config = config
        self.board = Board()
        self.event_log = EventLog(config.max_log_events)

        self.rng = random.Random(config.seed)

        self.players = PlayerRegistry(players)
        self.properties = PropertyRegistry(
            [PropertyState(pos) for pos in self.board.get_ownable_positions()]
        )
        self.treasury = Treasury(
            sum(config.starting_rubles for p in players if not p.is_stalin)
        )

        self.decks: Dict[DeckType, Deck] = {
            DeckType.PARTY_DIRECTIVE: create_party_directive_deck(self.rng),
            DeckType.COMMUNIST_TEST: create_communist_test_deck(self.rng),
        }

        self.current_player_index = 0
        self.round_number = 1
        self.turn_number = 0
        self.turn_phase = TurnPhase.PRE_ROLL
        self.game_phase = GamePhase.PLAYING
        self.doubles_count = 0
        self.last_dice_roll: Optional[Tuple[int, ...]] = None
        self.pending_action: Optional[PendingAction] = None

        self.vouchers: List[VoucherAgreement] = []
        self.confessions: List[Confession] = []
        self.active_tribunal: Optional[Tribunal] = None
        self.denouncement_counts: Dict[int, int] = {}

        self.trades: Dict[int, Trade] = {}
        self.trade_history: List[Trade] = []
        self.next_trade_id = 1

        self.great_purge: Optional[GreatPurge] = None
        self.five_year_plan: Optional[FiveYearPlan] = None
        self.heroes: List[HeroAward] = []

        self.end_votes: Dict[int, bool] = {}
        self.end_condition: Optional[GameEndCondition] = None
        self.winner_id: Optional[int] = None

    @property
    def current_player_id(self) -> int:
        return self.players.order[self.current_player_index % len(self.players.order)]

    def get_current_player(self) -> PlayerState:
        """Get the player whose turn it is."""
        return self.players.get(self.current_player_id)

    @property
    def game_over(self) -> bool:
        return self.game_phase == GamePhase.ENDED

    def set_pending(self, action: Optional[PendingAction]) -> None:
        """Suspend the turn on ``action``, or finish it when None."""
        self.pending_action = action
        self.turn_phase = TurnPhase.AWAITING_INPUT if action is not None else TurnPhase.POST_TURN

    def end_turn_now(self, player_id: int) -> None:
        """
        Drop anything pending and move to post-turn if it is ``player_id``'s
        turn. Forfeits any extra roll earned from doubles.
        """
        if player_id != self.current_player_id:
            return
        self.pending_action = None
        self.doubles_count = 0
        self.turn_phase = TurnPhase.POST_TURN

    def sync_vouching_for(self, voucher_id: int) -> None:
        """Point ``vouching_for`` at the voucher's latest active agreement, if any."""
        voucher = self.players.get(voucher_id)
        if voucher is None:
            return
        prisoner_id = None
        for agreement in self.vouchers:
            if agreement.is_active and agreement.voucher_id == voucher_id:
                prisoner_id = agreement.prisoner_id
        if voucher.vouching_for != prisoner_id:
            self.players.update(voucher_id, vouching_for=prisoner_id)

    def is_hero(self, player_id: int) -> bool:
        return any(
            h.player_id == player_id and h.expires_at_round > self.round_number for h in self.heroes
        )
