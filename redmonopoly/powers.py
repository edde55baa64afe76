"""
Active piece abilities.

Each power can be used once per game, except the tank's requisition which
recharges every lap. Availability is tracked in ``PlayerState.used_abilities``.
"""

import logging
from typing import Iterable

from redmonopoly.abilities import (
    IRON_CURTAIN_DISAPPEAR,
    LENIN_SPEECH,
    LENIN_SPEECH_AMOUNT,
    SICKLE_HARVEST,
    SICKLE_HARVEST_MAX_COST,
    TANK_REQUISITION,
    TANK_REQUISITION_AMOUNT,
    AbilityPolicy,
)
from redmonopoly.economy import EconomyEngine
from redmonopoly.money import EventType
from redmonopoly.player import PlayerState
from redmonopoly.state import GameState

logger = logging.getLogger(__name__)


class PiecePowers:
    """Executes the one-off and per-lap piece abilities."""

    def __init__(self, state: GameState, abilities: AbilityPolicy, economy: EconomyEngine):
        self.state = state
        self.abilities = abilities
        self.economy = economy

    def _user(self, player_id: int, key: str):
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return None
        if not self.abilities.is_available(player, key):
            logger.debug("Ability %s unavailable to player %s", key, player_id)
            return None
        return player

    def tank_requisition(self, tank_id: int, target_id: int) -> int:
        """
        Take up to 50 rubles from another player.

        Returns:
            Rubles requisitioned, 0 if the ability could not be used
        """
        tank = self._user(tank_id, TANK_REQUISITION)
        target = self.state.players.get(target_id)
        if tank is None or target is None or target_id == tank_id or not target.is_active:
            return 0

        amount = min(TANK_REQUISITION_AMOUNT, max(0, target.rubles))
        if amount > 0:
            self.economy.transfer(target_id, tank_id, amount)
        self.abilities.mark_used(tank_id, TANK_REQUISITION)

        self.state.event_log.log(
            EventType.ABILITY_USED,
            tank_id,
            f"{tank.name}'s Tank requisitioned {amount} rubles from {target.name}!",
            ability=TANK_REQUISITION,
            target_id=target_id,
            amount=amount,
        )
        return amount

    def sickle_harvest(self, sickle_id: int, space_id: int) -> bool:
        """Seize a cheap property from another player."""
        sickle = self._user(sickle_id, SICKLE_HARVEST)
        prop = self.state.properties.get(space_id)
        space = self.state.board.get_property_space(space_id)
        if sickle is None or prop is None or space is None:
            return False
        if prop.custodian_id is None or prop.custodian_id == sickle_id:
            return False
        if space.base_cost >= SICKLE_HARVEST_MAX_COST:
            self.state.event_log.log(
                EventType.PURCHASE_BLOCKED,
                sickle_id,
                f"Cannot harvest {space.name} - value must be less than {SICKLE_HARVEST_MAX_COST} rubles!",
                space_id=space_id,
            )
            return False

        victim = self.state.players.get(prop.custodian_id)
        if not self.economy.set_custodian(space_id, sickle_id):
            return False
        self.abilities.mark_used(sickle_id, SICKLE_HARVEST)

        self.state.event_log.log(
            EventType.ABILITY_USED,
            sickle_id,
            f"{sickle.name}'s Sickle harvested {space.name} from {victim.name}!",
            ability=SICKLE_HARVEST,
            space_id=space_id,
        )
        return True

    def iron_curtain_disappear(self, player_id: int, space_id: int) -> bool:
        """Return any player-held space to the State."""
        player = self._user(player_id, IRON_CURTAIN_DISAPPEAR)
        prop = self.state.properties.get(space_id)
        if player is None or prop is None or prop.custodian_id is None:
            return False

        victim = self.state.players.get(prop.custodian_id)
        self.economy.set_custodian(space_id, None)
        self.abilities.mark_used(player_id, IRON_CURTAIN_DISAPPEAR)

        self.state.event_log.log(
            EventType.ABILITY_USED,
            player_id,
            f"{player.name}'s Iron Curtain made {self.state.board.get_space(space_id).name} "
            f"disappear from {victim.name}!",
            ability=IRON_CURTAIN_DISAPPEAR,
            space_id=space_id,
        )
        return True

    def lenin_speech(self, player_id: int, applauder_ids: Iterable[int]) -> int:
        """
        Collect up to 100 rubles from each applauding player.

        Returns:
            Total rubles collected
        """
        speaker = self._user(player_id, LENIN_SPEECH)
        if speaker is None:
            return 0

        total = 0
        applauders = []
        for applauder_id in dict.fromkeys(applauder_ids):
            applauder: PlayerState = self.state.players.get(applauder_id)
            if applauder is None or applauder_id == player_id or not applauder.is_active:
                continue
            amount = min(LENIN_SPEECH_AMOUNT, max(0, applauder.rubles))
            if amount > 0:
                self.economy.transfer(applauder_id, player_id, amount)
                total += amount
            applauders.append(applauder_id)
        self.abilities.mark_used(player_id, LENIN_SPEECH)

        self.state.event_log.log(
            EventType.ABILITY_USED,
            player_id,
            f"{speaker.name}'s inspiring speech collected {total} rubles from "
            f"{len(applauders)} applauders!",
            ability=LENIN_SPEECH,
            applauders=applauders,
            amount=total,
        )
        return total
