"""
Snapshot serialization of a Game.

``serialize_snapshot`` produces a JSON-compatible dict of the complete
session; ``restore_snapshot`` loads one back into a game created with the
same seats.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, List, Optional

from redmonopoly.cards import Card, DeckType
from redmonopoly.exceptions import SnapshotError
from redmonopoly.game import Game
from redmonopoly.pending import (
    BreadlineContribution,
    BribeVerdict,
    CampLabourApproval,
    ConfessionReview,
    DrawCard,
    GulagEscapeChoice,
    InformVerdict,
    PendingAction,
    PendingKind,
    PravdaRevote,
    PropertyPurchase,
    QuotaPayment,
    RailwayFee,
    RuleRewriteApproval,
    StoyPilfer,
    TaxPayment,
    UtilityFee,
    VoucherRequest,
)
from redmonopoly.player import (
    Debt,
    EliminationReason,
    EliminationRecord,
    PieceType,
    PlayerState,
    PropertyState,
    Rank,
)
from redmonopoly.state import (
    Confession,
    FiveYearPlan,
    GameEndCondition,
    GamePhase,
    GreatPurge,
    HeroAward,
    Trade,
    TradeOffer,
    TradeStatus,
    Tribunal,
    TribunalPhase,
    TurnPhase,
    VoucherAgreement,
    WitnessRequirement,
)

SNAPSHOT_VERSION = 2

PENDING_TYPES = {
    cls.kind: cls
    for cls in (
        StoyPilfer,
        PropertyPurchase,
        QuotaPayment,
        RailwayFee,
        UtilityFee,
        TaxPayment,
        DrawCard,
        BreadlineContribution,
        GulagEscapeChoice,
        VoucherRequest,
        InformVerdict,
        BribeVerdict,
        ConfessionReview,
        CampLabourApproval,
        RuleRewriteApproval,
        PravdaRevote,
    )
}


def serialize_snapshot(game: Game) -> Dict[str, Any]:
    """Serialize a Game into a JSON-compatible dict.

    The snapshot includes:
    - turn bookkeeping and the pending action
    - every player and property record
    - treasury, vouchers, the active tribunal and end votes
    - confessions, trades and the running decrees
    - deck order, discard piles and held cards, and the RNG state
    """
    state = game.state
    players: List[Dict[str, Any]] = []
    for player in state.players.all():
        players.append(
            {
                "player_id": player.player_id,
                "name": player.name,
                "piece": player.piece.value if player.piece else None,
                "is_stalin": player.is_stalin,
                "rank": player.rank.value,
                "rubles": player.rubles,
                "position": player.position,
                "properties": list(player.properties),
                "in_gulag": player.in_gulag,
                "gulag_turns": player.gulag_turns,
                "is_eliminated": player.is_eliminated,
                "elimination": _elimination_to_dict(player.elimination),
                "used_abilities": sorted(player.used_abilities),
                "debt": _debt_to_dict(player.debt),
                "vouching_for": player.vouching_for,
                "gulag_cards": player.gulag_cards,
                "under_suspicion": player.under_suspicion,
                "laps_completed": player.laps_completed,
            }
        )

    properties = [
        {
            "space_id": prop.space_id,
            "name": state.board.get_space(prop.space_id).name,
            "custodian_id": prop.custodian_id,
            "collectivization_level": prop.collectivization_level,
            "mortgaged": prop.mortgaged,
        }
        for prop in state.properties.all()
    ]

    tribunal = None
    if state.active_tribunal is not None:
        t = state.active_tribunal
        tribunal = {
            "accuser_id": t.accuser_id,
            "accused_id": t.accused_id,
            "crime": t.crime,
            "phase": t.phase.value,
            "required_count": t.requirement.count,
            "unanimous": t.requirement.unanimous,
            "witnesses_for": list(t.witnesses_for),
            "witnesses_against": list(t.witnesses_against),
        }

    rng_version, rng_internal, rng_gauss = state.rng.getstate()

    return {
        "version": SNAPSHOT_VERSION,
        "round_number": state.round_number,
        "turn_number": state.turn_number,
        "current_player_id": state.current_player_id,
        "turn_phase": state.turn_phase.value,
        "game_phase": state.game_phase.value,
        "doubles_count": state.doubles_count,
        "last_dice_roll": list(state.last_dice_roll) if state.last_dice_roll else None,
        "pending_action": _pending_to_dict(state.pending_action),
        "treasury": state.treasury.balance,
        "players": players,
        "properties": properties,
        "vouchers": [
            {
                "prisoner_id": v.prisoner_id,
                "voucher_id": v.voucher_id,
                "expires_at_round": v.expires_at_round,
                "is_active": v.is_active,
            }
            for v in state.vouchers
        ],
        "tribunal": tribunal,
        "denouncement_counts": {str(pid): count for pid, count in state.denouncement_counts.items()},
        "end_votes": {str(pid): vote for pid, vote in state.end_votes.items()},
        "confessions": [
            {
                "prisoner_id": c.prisoner_id,
                "text": c.text,
                "submitted_round": c.submitted_round,
                "reviewed": c.reviewed,
                "accepted": c.accepted,
            }
            for c in state.confessions
        ],
        "trades": [_trade_to_dict(t) for t in state.trades.values()],
        "trade_history": [_trade_to_dict(t) for t in state.trade_history],
        "next_trade_id": state.next_trade_id,
        "great_purge": [list(vote) for vote in state.great_purge.votes] if state.great_purge else None,
        "five_year_plan": (
            {
                "target": state.five_year_plan.target,
                "started_round": state.five_year_plan.started_round,
                "collected": state.five_year_plan.collected,
            }
            if state.five_year_plan
            else None
        ),
        "heroes": [
            {
                "player_id": h.player_id,
                "granted_at_round": h.granted_at_round,
                "expires_at_round": h.expires_at_round,
            }
            for h in state.heroes
        ],
        "end_condition": state.end_condition.value if state.end_condition else None,
        "winner_id": state.winner_id,
        "decks": {
            deck_type.value: {
                "cards": [c.card_id for c in deck.cards],
                "discard": [c.card_id for c in deck.discard_pile],
                "held": [c.card_id for c in deck.held_cards],
            }
            for deck_type, deck in state.decks.items()
        },
        "rng": {"version": rng_version, "internal": list(rng_internal), "gauss": rng_gauss},
    }


def restore_snapshot(game: Game, data: Dict[str, Any]) -> Game:
    """
    Load a snapshot into ``game``, replacing its state.

    Raises:
        SnapshotError: If the data is malformed or its seats differ from the game's
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a dict")
    if data.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {data.get('version')!r}")

    state = game.state
    try:
        player_ids = [p["player_id"] for p in data["players"]]
        if player_ids != state.players.order:
            raise SnapshotError("Snapshot seats do not match this game")

        for entry in data["players"]:
            state.players.put(_player_from_dict(entry))
        for entry in data["properties"]:
            if entry["space_id"] not in state.properties:
                raise SnapshotError(f"Unknown property {entry['space_id']}")
            state.properties.put(
                PropertyState(
                    space_id=entry["space_id"],
                    custodian_id=entry["custodian_id"],
                    collectivization_level=entry["collectivization_level"],
                    mortgaged=entry["mortgaged"],
                )
            )

        state.round_number = data["round_number"]
        state.turn_number = data["turn_number"]
        state.current_player_index = state.players.order.index(data["current_player_id"])
        state.turn_phase = TurnPhase(data["turn_phase"])
        state.game_phase = GamePhase(data["game_phase"])
        state.doubles_count = data["doubles_count"]
        state.last_dice_roll = tuple(data["last_dice_roll"]) if data["last_dice_roll"] else None
        state.pending_action = _pending_from_dict(data["pending_action"])
        state.treasury.balance = data["treasury"]

        state.vouchers = [VoucherAgreement(**v) for v in data["vouchers"]]
        state.active_tribunal = _tribunal_from_dict(data["tribunal"])
        state.denouncement_counts = {int(pid): count for pid, count in data["denouncement_counts"].items()}
        state.end_votes = {int(pid): vote for pid, vote in data["end_votes"].items()}
        state.end_condition = GameEndCondition(data["end_condition"]) if data["end_condition"] else None
        state.winner_id = data["winner_id"]

        state.confessions = [Confession(**c) for c in data["confessions"]]
        state.trades = {t["trade_id"]: _trade_from_dict(t) for t in data["trades"]}
        state.trade_history = [_trade_from_dict(t) for t in data["trade_history"]]
        state.next_trade_id = data["next_trade_id"]
        purge = data["great_purge"]
        state.great_purge = GreatPurge(votes=tuple(tuple(v) for v in purge)) if purge is not None else None
        plan = data["five_year_plan"]
        state.five_year_plan = FiveYearPlan(**plan) if plan is not None else None
        state.heroes = [HeroAward(**h) for h in data["heroes"]]

        for deck_value, entry in data["decks"].items():
            _restore_deck(game, DeckType(deck_value), entry)

        rng = data["rng"]
        state.rng.setstate((rng["version"], tuple(rng["internal"]), rng["gauss"]))
    except SnapshotError:
        raise
    except (KeyError, ValueError, TypeError) as e:
        raise SnapshotError(f"Malformed snapshot: {e}") from e

    return game


def _debt_to_dict(debt: Optional[Debt]) -> Optional[Dict[str, Any]]:
    if debt is None:
        return None
    return {
        "debtor_id": debt.debtor_id,
        "creditor_id": debt.creditor_id,
        "amount": debt.amount,
        "created_at_round": debt.created_at_round,
        "reason": debt.reason,
    }


def _elimination_to_dict(record: Optional[EliminationRecord]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {
        "reason": record.reason.value,
        "turn": record.turn,
        "final_wealth": record.final_wealth,
        "final_rank": record.final_rank.value,
        "final_property_count": record.final_property_count,
    }


def _player_from_dict(entry: Dict[str, Any]) -> PlayerState:
    elimination = entry["elimination"]
    if elimination is not None:
        elimination = EliminationRecord(
            reason=EliminationReason(elimination["reason"]),
            turn=elimination["turn"],
            final_wealth=elimination["final_wealth"],
            final_rank=Rank(elimination["final_rank"]),
            final_property_count=elimination["final_property_count"],
        )
    debt = Debt(**entry["debt"]) if entry["debt"] is not None else None

    return PlayerState(
        player_id=entry["player_id"],
        name=entry["name"],
        piece=PieceType(entry["piece"]) if entry["piece"] else None,
        is_stalin=entry["is_stalin"],
        rank=Rank(entry["rank"]),
        rubles=entry["rubles"],
        position=entry["position"],
        properties=tuple(entry["properties"]),
        in_gulag=entry["in_gulag"],
        gulag_turns=entry["gulag_turns"],
        is_eliminated=entry["is_eliminated"],
        elimination=elimination,
        used_abilities=frozenset(entry["used_abilities"]),
        debt=debt,
        vouching_for=entry["vouching_for"],
        gulag_cards=entry["gulag_cards"],
        under_suspicion=entry["under_suspicion"],
        laps_completed=entry["laps_completed"],
    )


def _pending_to_dict(pending: Optional[PendingAction]) -> Optional[Dict[str, Any]]:
    if pending is None:
        return None
    result: Dict[str, Any] = {"kind": pending.kind.value}
    for f in fields(pending):
        value = getattr(pending, f.name)
        if isinstance(value, DeckType):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        result[f.name] = value
    return result


def _pending_from_dict(entry: Optional[Dict[str, Any]]) -> Optional[PendingAction]:
    if entry is None:
        return None
    cls = PENDING_TYPES[PendingKind(entry["kind"])]
    values: Dict[str, Any] = {}
    for f in fields(cls):
        value = entry[f.name]
        if f.name == "deck_type":
            value = DeckType(value)
        elif isinstance(value, list):
            value = tuple(value)
        values[f.name] = value
    return cls(**values)


def _offer_to_dict(offer: TradeOffer) -> Dict[str, Any]:
    return {"rubles": offer.rubles, "properties": sorted(offer.properties), "gulag_cards": offer.gulag_cards}


def _trade_to_dict(trade: Trade) -> Dict[str, Any]:
    return {
        "trade_id": trade.trade_id,
        "proposer_id": trade.proposer_id,
        "recipient_id": trade.recipient_id,
        "proposer_offer": _offer_to_dict(trade.proposer_offer),
        "recipient_offer": _offer_to_dict(trade.recipient_offer),
        "proposed_round": trade.proposed_round,
        "status": trade.status.value,
    }


def _trade_from_dict(entry: Dict[str, Any]) -> Trade:
    def offer(values: Dict[str, Any]) -> TradeOffer:
        return TradeOffer(
            rubles=values["rubles"],
            properties=frozenset(values["properties"]),
            gulag_cards=values["gulag_cards"],
        )

    return Trade(
        trade_id=entry["trade_id"],
        proposer_id=entry["proposer_id"],
        recipient_id=entry["recipient_id"],
        proposer_offer=offer(entry["proposer_offer"]),
        recipient_offer=offer(entry["recipient_offer"]),
        proposed_round=entry["proposed_round"],
        status=TradeStatus(entry["status"]),
    )


def _tribunal_from_dict(entry: Optional[Dict[str, Any]]) -> Optional[Tribunal]:
    if entry is None:
        return None
    return Tribunal(
        accuser_id=entry["accuser_id"],
        accused_id=entry["accused_id"],
        crime=entry["crime"],
        requirement=WitnessRequirement(entry["required_count"], entry["unanimous"]),
        phase=TribunalPhase(entry["phase"]),
        witnesses_for=tuple(entry["witnesses_for"]),
        witnesses_against=tuple(entry["witnesses_against"]),
    )


def _restore_deck(game: Game, deck_type: DeckType, entry: Dict[str, Any]) -> None:
    deck = game.state.decks[deck_type]
    by_id: Dict[str, Card] = {
        card.card_id: card for card in deck.cards + deck.discard_pile + deck.held_cards
    }
    deck.cards = [by_id[card_id] for card_id in entry["cards"]]
    deck.discard_pile = [by_id[card_id] for card_id in entry["discard"]]
    deck.held_cards = [by_id[card_id] for card_id in entry["held"]]
