"""
Game facade: composes the rule services around one shared state.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from redmonopoly.abilities import AbilityPolicy, abilities_for
from redmonopoly.cards import Card
from redmonopoly.config import GameConfig
from redmonopoly.decrees import StalinDecrees
from redmonopoly.economy import EconomyEngine
from redmonopoly.exceptions import InvalidSetupError, PlayerNotFoundError
from redmonopoly.group_powers import GroupPowers
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.pending import PendingAction
from redmonopoly.player import GulagReason, Player, PlayerState
from redmonopoly.powers import PiecePowers
from redmonopoly.resolver import SpaceResolver
from redmonopoly.standing import StandingService
from redmonopoly.state import (
    FiveYearPlan,
    GameState,
    HeroAward,
    Trade,
    TradeOffer,
    Tribunal,
    TribunalPhase,
    WitnessSide,
)
from redmonopoly.trading import TradeService
from redmonopoly.tribunal import TribunalSubsystem, Verdict
from redmonopoly.turns import TurnScheduler

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


class Game:
    """
    A single match of Soviet Monopoly.

    Services are built leaves first and each receives the shared state plus
    the services it depends on. Gameplay methods reject invalid calls by
    returning False or None rather than raising.
    """

    def __init__(self, config: GameConfig, players: List[PlayerState]):
        self.config = config
        self.state = GameState(config, players)

        self.abilities = AbilityPolicy(self.state)
        self.economy = EconomyEngine(self.state, self.abilities)
        self.standing = StandingService(self.state, self.abilities, self.economy)
        self.gulag = GulagSubsystem(self.state, self.abilities, self.economy, self.standing)
        self.tribunal = TribunalSubsystem(self.state, self.abilities, self.economy, self.standing, self.gulag)
        self.powers = PiecePowers(self.state, self.abilities, self.economy)
        self.group_powers = GroupPowers(self.state, self.abilities, self.economy, self.gulag)
        self.decrees = StalinDecrees(self.state, self.abilities, self.economy, self.gulag)
        self.trading = TradeService(self.state, self.economy)
        self.resolver = SpaceResolver(self.state, self.abilities, self.economy, self.standing, self.gulag)
        self.turns = TurnScheduler(
            self.state, self.abilities, self.economy, self.standing, self.gulag, self.resolver, self.group_powers
        )

    # State access

    def get_player(self, player_id: int) -> Optional[PlayerState]:
        return self.state.players.get(player_id)

    def require_player(self, player_id: int) -> PlayerState:
        """Get a player or raise PlayerNotFoundError."""
        player = self.state.players.get(player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {player_id} does not exist")
        return player

    def get_current_player(self) -> PlayerState:
        return self.state.get_current_player()

    @property
    def pending_action(self) -> Optional[PendingAction]:
        return self.state.pending_action

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    # Turn flow

    def start(self) -> None:
        self.turns.start_game()

    def roll_dice(self, dice: Optional[Tuple[int, ...]] = None) -> Optional[Tuple[int, ...]]:
        return self.turns.roll_dice(dice)

    def move_player(self, player_id: int, spaces: int) -> int:
        return self.turns.move_player(player_id, spaces)

    def resolve_landing(self, player_id: int, dice_total: int = 0) -> Optional[PendingAction]:
        return self.resolver.resolve_landing(player_id, dice_total)

    def resolve_pending_action(self, decision) -> bool:
        return self.turns.resolve_pending_action(decision)

    def cancel_pending_action(self) -> bool:
        return self.turns.cancel_pending_action()

    def end_turn(self) -> bool:
        return self.turns.end_turn()

    # Gulag

    def send_to_gulag(self, player_id: int, reason: GulagReason, justification: Optional[str] = None) -> bool:
        return self.gulag.send_to_gulag(player_id, reason, justification)

    def stalin_decree(self, player_id: int, justification: str = "") -> bool:
        return self.gulag.stalin_decree(player_id, justification)

    def pay_for_release(self, player_id: int) -> bool:
        return self.gulag.pay_for_release(player_id)

    def use_gulag_card(self, player_id: int) -> bool:
        return self.gulag.use_gulag_card(player_id)

    def required_escape_doubles(self, player_id: int) -> Tuple[int, ...]:
        return self.gulag.required_escape_doubles(player_id)

    def submit_confession(self, prisoner_id: int, confession: str) -> bool:
        return self.gulag.submit_confession(prisoner_id, confession)

    def review_confession(self, prisoner_id: int, accepted: bool) -> bool:
        return self.gulag.review_confession(prisoner_id, accepted)

    # Tribunal

    def denounce(self, accuser_id: int, accused_id: int, crime: str) -> Optional[Tribunal]:
        return self.tribunal.initiate(accuser_id, accused_id, crime)

    def advance_tribunal(self) -> Optional[TribunalPhase]:
        return self.tribunal.advance_phase()

    def add_witness(self, witness_id: int, side: WitnessSide) -> bool:
        return self.tribunal.add_witness(witness_id, side)

    def render_verdict(self, verdict: Verdict) -> bool:
        return self.tribunal.render_verdict(verdict)

    def denounce_targets(self, accuser_id: int) -> List[int]:
        return self.tribunal.denounce_targets(accuser_id)

    # Economy

    def purchase_property(self, player_id: int, space_id: int) -> bool:
        return self.economy.purchase_property(player_id, space_id)

    def pay_fee(self, payer_id: int, space_id: int, dice_total: int = 0) -> bool:
        return self.economy.pay_fee(payer_id, space_id, dice_total)

    def pay_debt(self, debtor_id: int, payer_id: Optional[int] = None) -> bool:
        return self.economy.pay_debt(debtor_id, payer_id)

    def transfer_property(self, space_id: int, to_player_id: int) -> bool:
        return self.economy.transfer_property(space_id, to_player_id)

    def collectivize(self, player_id: int, space_id: int) -> bool:
        return self.economy.collectivize(player_id, space_id)

    def sell_collectivization(self, player_id: int, space_id: int) -> bool:
        return self.economy.sell_collectivization(player_id, space_id)

    def mortgage_property(self, player_id: int, space_id: int) -> bool:
        return self.economy.mortgage_property(player_id, space_id)

    def unmortgage_property(self, player_id: int, space_id: int) -> bool:
        return self.economy.unmortgage_property(player_id, space_id)

    def wealth(self, player_id: int) -> int:
        return self.economy.calculate_wealth(player_id)

    # Standing

    def promote_player(self, player_id: int) -> bool:
        return self.standing.promote_player(player_id)

    def demote_player(self, player_id: int) -> bool:
        return self.standing.demote_player(player_id)

    def execute_player(self, player_id: int) -> bool:
        return self.standing.execute_player(player_id)

    def declare_bankruptcy(self, player_id: int, voluntary: bool = False) -> bool:
        return self.standing.declare_bankruptcy(player_id, voluntary)

    def cast_end_vote(self, player_id: int, vote: bool) -> Optional[bool]:
        return self.standing.cast_end_vote(player_id, vote)

    # Piece abilities

    def tank_requisition(self, tank_id: int, target_id: int) -> int:
        return self.powers.tank_requisition(tank_id, target_id)

    def sickle_harvest(self, sickle_id: int, space_id: int) -> bool:
        return self.powers.sickle_harvest(sickle_id, space_id)

    def iron_curtain_disappear(self, player_id: int, space_id: int) -> bool:
        return self.powers.iron_curtain_disappear(player_id, space_id)

    def lenin_speech(self, player_id: int, applauder_ids: Iterable[int]) -> int:
        return self.powers.lenin_speech(player_id, applauder_ids)

    def ability_status(self, player_id: int) -> str:
        return self.abilities.ability_status(player_id)

    # Property-group powers

    def camp_labour(self, custodian_id: int, target_id: int) -> bool:
        return self.group_powers.camp_labour(custodian_id, target_id)

    def kgb_preview(self, player_id: int) -> Optional[Card]:
        return self.group_powers.kgb_preview(player_id)

    def ministry_rewrite(self, player_id: int, new_rule: str) -> bool:
        return self.group_powers.ministry_rewrite(player_id, new_rule)

    def pravda_revote(self, player_id: int, decision: str) -> bool:
        return self.group_powers.pravda_revote(player_id, decision)

    # Trading

    def propose_trade(
        self, proposer_id: int, recipient_id: int, proposer_offer: TradeOffer, recipient_offer: TradeOffer
    ) -> Optional[Trade]:
        return self.trading.propose(proposer_id, recipient_id, proposer_offer, recipient_offer)

    def accept_trade(self, trade_id: int, player_id: int) -> bool:
        return self.trading.accept(trade_id, player_id)

    def reject_trade(self, trade_id: int, player_id: int) -> bool:
        return self.trading.reject(trade_id, player_id)

    def cancel_trade(self, trade_id: int, player_id: int) -> bool:
        return self.trading.cancel(trade_id, player_id)

    # Stalin's decrees

    def initiate_great_purge(self) -> bool:
        return self.decrees.initiate_great_purge()

    def vote_in_purge(self, voter_id: int, target_id: int) -> bool:
        return self.decrees.vote_in_purge(voter_id, target_id)

    def resolve_great_purge(self) -> List[int]:
        return self.decrees.resolve_great_purge()

    def initiate_five_year_plan(self, target: int) -> Optional[FiveYearPlan]:
        return self.decrees.initiate_five_year_plan(target)

    def contribute_to_plan(self, player_id: int, amount: int) -> bool:
        return self.decrees.contribute_to_plan(player_id, amount)

    def resolve_five_year_plan(self) -> Optional[bool]:
        return self.decrees.resolve_five_year_plan()

    def grant_hero(self, player_id: int) -> Optional[HeroAward]:
        return self.decrees.grant_hero(player_id)

    def is_hero(self, player_id: int) -> bool:
        return self.state.is_hero(player_id)


def create_game(config: GameConfig, players: List[Player]) -> Game:
    """
    Create and start a new game.

    Args:
        config: Game configuration
        players: Seats in turn order; at most one may be Stalin

    Returns:
        Initialized Game with the first eligible player to move

    Raises:
        InvalidSetupError: If the seats cannot form a valid game
    """
    ids = [p.player_id for p in players]
    if len(set(ids)) != len(ids):
        raise InvalidSetupError("Player ids must be unique")

    stalins = [p for p in players if p.is_stalin]
    if len(stalins) > 1:
        raise InvalidSetupError("Only one player can be Stalin")

    comrades = [p for p in players if not p.is_stalin]
    if len(comrades) < MIN_PLAYERS:
        raise InvalidSetupError(f"Game requires at least {MIN_PLAYERS} players besides Stalin")
    if any(p.piece is None for p in comrades):
        raise InvalidSetupError("Every player except Stalin needs a piece")
    pieces = [p.piece for p in comrades]
    if len(set(pieces)) != len(pieces):
        raise InvalidSetupError("Each piece can only be used once")

    states = [
        PlayerState(
            player_id=p.player_id,
            name=p.name,
            is_stalin=True,
        )
        if p.is_stalin
        else PlayerState(
            player_id=p.player_id,
            name=p.name,
            piece=p.piece,
            rank=abilities_for(p.piece).starting_rank,
            rubles=config.starting_rubles,
        )
        for p in players
    ]

    game = Game(config, states)
    game.start()
    logger.info("Created game with %d players (seed=%s)", len(players), config.seed)
    return game
