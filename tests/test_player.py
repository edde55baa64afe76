"""
Tests for player records, ranks and game setup.
"""

import pytest

from redmonopoly.config import GameConfig
from redmonopoly.exceptions import InvalidSetupError, PlayerNotFoundError
from redmonopoly.game import create_game
from redmonopoly.player import PieceType, Player, Rank
from redmonopoly.state import TurnPhase


def test_rank_order_and_clamping():
    assert Rank.PROLETARIAT.level < Rank.PARTY_MEMBER.level < Rank.COMMISSAR.level < Rank.INNER_CIRCLE.level
    assert Rank.INNER_CIRCLE.promoted() == Rank.INNER_CIRCLE
    assert Rank.PROLETARIAT.demoted() == Rank.PROLETARIAT
    assert Rank.COMMISSAR.at_least(Rank.PARTY_MEMBER)
    assert not Rank.PARTY_MEMBER.at_least(Rank.COMMISSAR)


def test_setup_deals_rubles_and_ranks(game_with_stalin):
    state = game_with_stalin.state
    stalin = state.players.get(0)
    assert stalin.is_stalin
    assert stalin.rubles == 0
    assert stalin.piece is None

    for pid in (1, 2, 3):
        player = state.players.get(pid)
        assert player.rubles == 1500
        assert player.rank == Rank.PROLETARIAT
        assert player.position == 0

    # Three comrades fund the treasury
    assert state.treasury.balance == 4500


def test_red_star_starts_as_party_member(game_config):
    game = create_game(
        game_config,
        [Player(0, "Alice", PieceType.RED_STAR), Player(1, "Boris", PieceType.SICKLE)],
    )
    assert game.get_player(0).rank == Rank.PARTY_MEMBER
    assert game.get_player(1).rank == Rank.PROLETARIAT


def test_first_turn_skips_stalin(game_with_stalin):
    assert game_with_stalin.state.current_player_id == 1
    assert game_with_stalin.state.turn_phase == TurnPhase.PRE_ROLL
    assert game_with_stalin.state.round_number == 1
    assert game_with_stalin.state.turn_number == 1


@pytest.mark.parametrize(
    "players",
    [
        [Player(0, "Alice", PieceType.HAMMER)],
        [Player(0, "Alice", PieceType.HAMMER), Player(0, "Boris", PieceType.SICKLE)],
        [Player(0, "Alice", PieceType.HAMMER), Player(1, "Boris", PieceType.HAMMER)],
        [Player(0, "Alice", PieceType.HAMMER), Player(1, "Boris")],
        [
            Player(0, "Stalin", is_stalin=True),
            Player(1, "Koba", is_stalin=True),
            Player(2, "Alice", PieceType.HAMMER),
            Player(3, "Boris", PieceType.SICKLE),
        ],
        [Player(0, "Stalin", is_stalin=True), Player(1, "Alice", PieceType.HAMMER)],
    ],
)
def test_invalid_setups_are_rejected(players):
    with pytest.raises(InvalidSetupError):
        create_game(GameConfig(seed=1), players)


def test_require_player_raises_for_unknown_id(game):
    assert game.require_player(2).name == "Vera"
    assert game.get_player(99) is None
    with pytest.raises(PlayerNotFoundError):
        game.require_player(99)


def test_records_are_replaced_not_mutated(game):
    before = game.get_player(0)
    game.promote_player(0)
    after = game.get_player(0)
    assert before.rank == Rank.PROLETARIAT
    assert after.rank == Rank.PARTY_MEMBER
    assert before is not after


def test_promotion_clamps_at_inner_circle(game):
    for _ in range(3):
        assert game.promote_player(1)
    assert game.get_player(1).rank == Rank.INNER_CIRCLE
    assert not game.promote_player(1)


def test_demotion_from_proletariat_is_noop(game):
    assert not game.demote_player(1)
    assert game.get_player(1).rank == Rank.PROLETARIAT
    assert game.get_player(1).is_active
