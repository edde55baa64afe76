"""
Quota, fee, debt and treasury economics.

Also owns custodianship changes, collectivization and mortgages, since all
of them move rubles between players and the State Treasury.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from redmonopoly.abilities import AbilityPolicy
from redmonopoly.money import EventType
from redmonopoly.player import Debt, Rank
from redmonopoly.spaces import (
    COLLECTIVIZATION_LEVEL_NAMES,
    MAX_COLLECTIVIZATION_LEVEL,
    PropertyGroup,
    PropertySpace,
    RailwaySpace,
    UtilitySpace,
)
from redmonopoly.state import GameState

logger = logging.getLogger(__name__)

# Minimum rank to become custodian of a property group
GROUP_RANK_REQUIREMENTS: Dict[PropertyGroup, Rank] = {
    PropertyGroup.ELITE: Rank.PARTY_MEMBER,
    PropertyGroup.KREMLIN: Rank.INNER_CIRCLE,
}
UTILITY_RANK_REQUIREMENT = Rank.COMMISSAR

# Purchase discount in percent by rank
RANK_DISCOUNTS: Dict[Rank, int] = {
    Rank.PROLETARIAT: 0,
    Rank.PARTY_MEMBER: 10,
    Rank.COMMISSAR: 20,
    Rank.INNER_CIRCLE: 50,
}

# Groups where the Proletariat pays a multiplied quota
PROLETARIAT_QUOTA_PENALTIES: Dict[PropertyGroup, float] = {
    PropertyGroup.ELITE: 2.0,
}


class EconomyEngine:
    """Calculates and moves money. Reads registries, consults the ability policy."""

    def __init__(self, state: GameState, abilities: AbilityPolicy):
        self.state = state
        self.abilities = abilities

    # Treasury and rubles

    def adjust_treasury(self, amount: int) -> int:
        """Adjust the treasury; the balance is clamped at zero."""
        return self.state.treasury.adjust(amount)

    def credit(self, player_id: int, amount: int) -> None:
        """Add rubles to a player, applying any wealth cap."""
        player = self.state.players.get(player_id)
        if player is None or amount == 0:
            return
        self.state.players.update(player_id, rubles=player.rubles + amount)
        self.apply_wealth_cap(player_id)

    def debit(self, player_id: int, amount: int) -> None:
        player = self.state.players.get(player_id)
        if player is None or amount == 0:
            return
        self.state.players.update(player_id, rubles=player.rubles - amount)

    def apply_wealth_cap(self, player_id: int) -> int:
        """Move rubles above the piece's cap into the treasury. Returns the excess."""
        player = self.state.players.get(player_id)
        if player is None:
            return 0
        cap = self.abilities.wealth_cap(player)
        if cap is None or player.rubles <= cap:
            return 0
        excess = player.rubles - cap
        self.state.players.update(player_id, rubles=cap)
        self.adjust_treasury(excess)
        self.state.event_log.log(
            EventType.TREASURY,
            player_id,
            f"{player.name} cannot hold more than {cap} rubles; {excess} seized by the State",
            amount=excess,
        )
        return excess

    def transfer(self, from_id: Optional[int], to_id: Optional[int], amount: int) -> bool:
        """
        Move rubles between two parties. ``None`` on either side is the State.
        The recipient is re-read after the sender is debited.
        """
        if amount <= 0:
            return False
        if from_id is not None and from_id not in self.state.players:
            return False
        if to_id is not None and to_id not in self.state.players:
            return False

        if from_id is None:
            self.adjust_treasury(-amount)
        else:
            self.debit(from_id, amount)

        if to_id is None:
            self.adjust_treasury(amount)
        else:
            self.credit(to_id, amount)
        return True

    # Quotas and fees

    def owns_complete_group(self, custodian_id: int, group: PropertyGroup) -> bool:
        """Check if a player controls every property in a group."""
        positions = self.state.board.get_group(group)
        if not positions:
            return False
        return all(
            p.custodian_id == custodian_id for p in self.state.properties.in_positions(positions)
        )

    def calculate_quota(self, space_id: int, payer_id: Optional[int] = None) -> int:
        """
        Quota owed on a property to its custodian.

        Base quota is multiplied by the collectivization level multiplier, by
        the complete-group bonus (uncollectivized properties only), by the
        payer's piece modifier and by the Proletariat penalty, then floored.
        Mortgage status is not considered here.

        Args:
            space_id: Board position of the property
            payer_id: Visiting player, if known

        Returns:
            Quota in rubles, 0 for a State-held or non-property space
        """
        space = self.state.board.get_property_space(space_id)
        prop = self.state.properties.get(space_id)
        if space is None or prop is None or prop.custodian_id is None:
            return 0

        complete = self.owns_complete_group(prop.custodian_id, space.group)
        quota: float = space.get_quota(prop.collectivization_level, complete)

        payer = self.state.players.get(payer_id)
        quota *= self.abilities.quota_multiplier(payer, space.group)
        if payer is not None and payer.rank == Rank.PROLETARIAT:
            quota *= PROLETARIAT_QUOTA_PENALTIES.get(space.group, 1.0)

        return int(math.floor(quota))

    def count_owned(self, custodian_id: int, positions: List[int]) -> int:
        return sum(
            1 for p in self.state.properties.in_positions(positions) if p.custodian_id == custodian_id
        )

    def calculate_railway_fee(self, custodian_id: int) -> int:
        """Fee for any station held by ``custodian_id``: 50 per station held."""
        count = self.count_owned(custodian_id, self.state.board.get_all_railways())
        station = self.state.board.get_space(self.state.board.get_all_railways()[0])
        return station.get_fee(count)

    def calculate_utility_fee(self, custodian_id: int, dice_total: int) -> int:
        """Dice total times 4, or times 10 when both utilities are held."""
        utilities = self.state.board.get_all_utilities()
        count = self.count_owned(custodian_id, utilities)
        if count == 0:
            return 0
        return self.state.board.get_space(utilities[0]).get_fee(dice_total, count)

    def calculate_fee(self, space_id: int, payer_id: int, dice_total: int = 0) -> int:
        """
        What ``payer_id`` owes for landing on ``space_id``.
        Zero for State-held, mortgaged or own spaces.
        """
        space = self.state.board.get_ownable_space(space_id)
        prop = self.state.properties.get(space_id)
        if space is None or prop is None:
            return 0
        if prop.custodian_id is None or prop.custodian_id == payer_id or prop.mortgaged:
            return 0

        if isinstance(space, PropertySpace):
            return self.calculate_quota(space_id, payer_id)
        if isinstance(space, RailwaySpace):
            return self.calculate_railway_fee(prop.custodian_id)
        if isinstance(space, UtilitySpace):
            return self.calculate_utility_fee(prop.custodian_id, dice_total)
        return 0

    def pay_fee(self, payer_id: int, space_id: int, dice_total: int = 0) -> bool:
        """
        Pay the quota or fee for a landed space to its custodian.
        If the payer cannot afford it, a debt to the custodian is created instead.

        Returns:
            True if paid (or nothing was owed), False if a debt was created
        """
        payer = self.state.players.get(payer_id)
        prop = self.state.properties.get(space_id)
        if payer is None or prop is None:
            return False

        fee = self.calculate_fee(space_id, payer_id, dice_total)
        if fee == 0:
            return True

        space = self.state.board.get_space(space_id)
        custodian = self.state.players.get(prop.custodian_id)
        if payer.rubles < fee:
            self.create_debt(payer_id, prop.custodian_id, fee, f"quota for {space.name}")
            return False

        self.transfer(payer_id, prop.custodian_id, fee)
        self.state.event_log.log(
            EventType.QUOTA_PAYMENT,
            payer_id,
            f"{payer.name} paid {fee} rubles quota to {custodian.name} for {space.name}",
            space_id=space_id,
            custodian_id=prop.custodian_id,
            amount=fee,
        )
        return True

    def pay_to_state(self, payer_id: int, amount: int, reason: str) -> bool:
        """Pay the treasury, or owe the State when short."""
        payer = self.state.players.get(payer_id)
        if payer is None or amount <= 0:
            return False
        if payer.rubles < amount:
            self.create_debt(payer_id, None, amount, reason)
            return False
        self.transfer(payer_id, None, amount)
        self.state.event_log.log(
            EventType.TAX_PAYMENT,
            payer_id,
            f"{payer.name} paid {amount} rubles to the State ({reason})",
            amount=amount,
        )
        return True

    # Debts

    def create_debt(self, debtor_id: int, creditor_id: Optional[int], amount: int, reason: str) -> Optional[Debt]:
        """Record a debt at the current round. A new debt replaces any existing one."""
        debtor = self.state.players.get(debtor_id)
        if debtor is None or amount <= 0:
            return None
        debt = Debt(debtor_id, creditor_id, amount, self.state.round_number, reason)
        self.state.players.update(debtor_id, debt=debt)

        creditor = self.state.players.get(creditor_id)
        creditor_name = creditor.name if creditor else "the State"
        self.state.event_log.log(
            EventType.DEBT_CREATED,
            debtor_id,
            f"{debtor.name} owes {amount} rubles to {creditor_name} - {reason}. "
            "Must pay within one round or face Gulag!",
            creditor_id=creditor_id,
            amount=amount,
        )
        logger.info("Debt of %s created for player %s (%s)", amount, debtor_id, reason)
        return debt

    def pay_debt(self, debtor_id: int, payer_id: Optional[int] = None) -> bool:
        """
        Settle a debt in full. The payer defaults to the debtor; a piece that
        may settle others' debts can pay on someone else's behalf.
        """
        debtor = self.state.players.get(debtor_id)
        if debtor is None or debtor.debt is None:
            return False

        payer_id = debtor_id if payer_id is None else payer_id
        payer = self.state.players.get(payer_id)
        if payer is None or payer.is_eliminated or payer.is_stalin:
            return False
        if payer_id != debtor_id and not self.abilities.can_pay_others_debts(payer):
            return False

        debt = debtor.debt
        if payer.rubles < debt.amount:
            return False

        self.transfer(payer_id, debt.creditor_id, debt.amount)
        self.state.players.update(debtor_id, debt=None)
        self.state.event_log.log(
            EventType.DEBT_PAID,
            debtor_id,
            f"{payer.name} settled {debtor.name}'s debt of {debt.amount} rubles",
            payer_id=payer_id,
            amount=debt.amount,
        )
        return True

    def collect_overdue_debts(self) -> List[int]:
        """
        Clear every debt unpaid for a full round and return the defaulters,
        who must then be sent to the Gulag.
        """
        defaulted: List[int] = []
        for player in self.state.players.all():
            if player.debt is None or player.is_eliminated:
                continue
            if self.state.round_number > player.debt.created_at_round + 1:
                self.state.players.update(player.player_id, debt=None)
                self.state.event_log.log(
                    EventType.DEBT_DEFAULT,
                    player.player_id,
                    f"{player.name} defaulted on a debt of {player.debt.amount} rubles",
                    amount=player.debt.amount,
                )
                defaulted.append(player.player_id)
        return defaulted

    # Custodianship

    def _space_group(self, space_id: int) -> Optional[PropertyGroup]:
        space = self.state.board.get_property_space(space_id)
        return space.group if space else None

    def can_hold(self, player_id: int, space_id: int) -> Tuple[bool, str]:
        """Rank and piece restrictions on becoming custodian of a space."""
        player = self.state.players.get(player_id)
        space = self.state.board.get_ownable_space(space_id)
        if player is None or space is None:
            return False, "Invalid player or space"
        if not player.is_active:
            return False, "Player is not in the game"

        if isinstance(space, UtilitySpace) and not player.rank.at_least(UTILITY_RANK_REQUIREMENT):
            return False, "Only Commissar or Inner Circle may control the Means of Production"

        group = self._space_group(space_id)
        required = GROUP_RANK_REQUIREMENTS.get(group) if group else None
        if required is not None and not player.rank.at_least(required):
            return False, f"Only {required.value} or higher may control {group.value} properties"

        if not self.abilities.can_own_group(player, group):
            return False, f"{player.name}'s piece cannot control {group.value} properties"

        return True, ""

    def can_purchase(self, player_id: int, space_id: int) -> Tuple[bool, str]:
        """Check if a player may buy a space from the State right now."""
        prop = self.state.properties.get(space_id)
        if prop is None:
            return False, "Invalid player or space"
        if prop.is_owned():
            return False, "Property already has a Custodian"
        allowed, reason = self.can_hold(player_id, space_id)
        if not allowed:
            return False, reason
        player = self.state.players.get(player_id)
        price = self.purchase_price(player_id, space_id)
        if player.rubles < price:
            return False, f"{player.name} cannot afford {price} rubles"
        return True, ""

    def purchase_price(self, player_id: int, space_id: int) -> int:
        """Base cost less the player's rank discount, floored."""
        player = self.state.players.get(player_id)
        cost = self.state.board.base_cost(space_id)
        if player is None:
            return cost
        return cost * (100 - RANK_DISCOUNTS[player.rank]) // 100

    def purchase_property(self, player_id: int, space_id: int) -> bool:
        """Buy a State-held space. The price goes to the treasury."""
        allowed, reason = self.can_purchase(player_id, space_id)
        if not allowed:
            self.state.event_log.log(
                EventType.PURCHASE_BLOCKED, player_id, f"Purchase blocked: {reason}", space_id=space_id
            )
            logger.debug("Purchase of %s by %s rejected: %s", space_id, player_id, reason)
            return False

        price = self.purchase_price(player_id, space_id)
        self.transfer(player_id, None, price)
        self.set_custodian(space_id, player_id)

        player = self.state.players.get(player_id)
        space = self.state.board.get_space(space_id)
        self.state.event_log.log(
            EventType.PURCHASE,
            player_id,
            f"{player.name} became Custodian of {space.name} for {price} rubles",
            space_id=space_id,
            price=price,
        )
        return True

    def set_custodian(self, space_id: int, custodian_id: Optional[int]) -> bool:
        """
        Change who controls a space and keep both players' property lists in step.
        A piece excluded from the space's group can never become its custodian.
        Returning a space to the State clears its improvements and mortgage.
        """
        prop = self.state.properties.get(space_id)
        if prop is None:
            return False

        if custodian_id is not None:
            new_custodian = self.state.players.get(custodian_id)
            if new_custodian is None:
                return False
            if not self.abilities.can_own_group(new_custodian, self._space_group(space_id)):
                return False

        previous_id = prop.custodian_id
        if previous_id == custodian_id:
            return True

        if previous_id is not None:
            previous = self.state.players.get(previous_id)
            self.state.players.update(
                previous_id, properties=tuple(p for p in previous.properties if p != space_id)
            )

        if custodian_id is None:
            self.state.properties.update(
                space_id, custodian_id=None, collectivization_level=0, mortgaged=False
            )
        else:
            self.state.properties.update(space_id, custodian_id=custodian_id)
            custodian = self.state.players.get(custodian_id)
            self.state.players.update(
                custodian_id, properties=tuple(sorted(custodian.properties + (space_id,)))
            )
        return True

    def transfer_property(self, space_id: int, to_player_id: int) -> bool:
        """Hand custodianship to another player, honouring purchase restrictions."""
        prop = self.state.properties.get(space_id)
        if prop is None:
            return False
        allowed, reason = self.can_hold(to_player_id, space_id)
        if not allowed:
            self.state.event_log.log(
                EventType.PURCHASE_BLOCKED, to_player_id, f"Transfer blocked: {reason}", space_id=space_id
            )
            return False

        previous = self.state.players.get(prop.custodian_id)
        if not self.set_custodian(space_id, to_player_id):
            return False
        receiver = self.state.players.get(to_player_id)
        self.state.event_log.log(
            EventType.TRANSFER,
            to_player_id,
            f"{self.state.board.get_space(space_id).name} transferred from "
            f"{previous.name if previous else 'State'} to {receiver.name}",
            space_id=space_id,
        )
        return True

    # Collectivization

    def collectivization_cost(self, current_level: int) -> int:
        """Cost to raise a property from ``current_level`` to the next level."""
        if current_level == MAX_COLLECTIVIZATION_LEVEL - 1:
            return self.state.config.palace_improvement_cost
        return self.state.config.improvement_cost

    def can_collectivize(self, player_id: int, space_id: int) -> bool:
        space = self.state.board.get_property_space(space_id)
        prop = self.state.properties.get(space_id)
        player = self.state.players.get(player_id)
        if space is None or prop is None or player is None:
            return False
        if prop.custodian_id != player_id or prop.mortgaged:
            return False
        if prop.collectivization_level >= MAX_COLLECTIVIZATION_LEVEL:
            return False

        # Communist equality: build evenly across the group
        levels = [
            p.collectivization_level
            for p in self.state.properties.in_positions(self.state.board.get_group(space.group))
        ]
        if prop.collectivization_level > min(levels):
            return False

        return player.rubles >= self.collectivization_cost(prop.collectivization_level)

    def collectivize(self, player_id: int, space_id: int) -> bool:
        """Raise a property's collectivization level by one."""
        if not self.can_collectivize(player_id, space_id):
            return False

        prop = self.state.properties.get(space_id)
        cost = self.collectivization_cost(prop.collectivization_level)
        self.transfer(player_id, None, cost)
        prop = self.state.properties.update(space_id, collectivization_level=prop.collectivization_level + 1)

        player = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.COLLECTIVIZE,
            player_id,
            f"{player.name} improved {self.state.board.get_space(space_id).name} to "
            f"{COLLECTIVIZATION_LEVEL_NAMES[prop.collectivization_level]} for {cost} rubles",
            space_id=space_id,
            level=prop.collectivization_level,
        )
        return True

    def sell_collectivization(self, player_id: int, space_id: int) -> bool:
        """Remove one collectivization level for half its build cost."""
        prop = self.state.properties.get(space_id)
        player = self.state.players.get(player_id)
        if prop is None or player is None:
            return False
        if prop.custodian_id != player_id or prop.collectivization_level == 0:
            return False

        refund = self.collectivization_cost(prop.collectivization_level - 1) // 2
        self.state.properties.update(space_id, collectivization_level=prop.collectivization_level - 1)
        self.transfer(None, player_id, refund)

        self.state.event_log.log(
            EventType.SELL_COLLECTIVIZATION,
            player_id,
            f"{player.name} sold collectivization on {self.state.board.get_space(space_id).name} "
            f"for {refund} rubles",
            space_id=space_id,
            refund=refund,
        )
        return True

    # Mortgages

    def mortgage_value(self, space_id: int) -> int:
        return self.state.board.base_cost(space_id) // 2

    def unmortgage_cost(self, space_id: int) -> int:
        rate = self.state.config.unmortgage_interest_rate
        return int(math.floor(self.mortgage_value(space_id) * (1 + rate)))

    def mortgage_property(self, player_id: int, space_id: int) -> bool:
        """Mortgage an unimproved property for half its base cost."""
        prop = self.state.properties.get(space_id)
        player = self.state.players.get(player_id)
        if prop is None or player is None:
            return False
        if prop.custodian_id != player_id or prop.mortgaged or prop.collectivization_level > 0:
            return False

        value = self.mortgage_value(space_id)
        self.state.properties.update(space_id, mortgaged=True)
        self.transfer(None, player_id, value)

        self.state.event_log.log(
            EventType.MORTGAGE,
            player_id,
            f"{player.name} mortgaged {self.state.board.get_space(space_id).name} for {value} rubles",
            space_id=space_id,
            amount=value,
        )
        return True

    def unmortgage_property(self, player_id: int, space_id: int) -> bool:
        """Lift a mortgage by paying the mortgage value plus interest to the State."""
        prop = self.state.properties.get(space_id)
        player = self.state.players.get(player_id)
        if prop is None or player is None:
            return False
        if prop.custodian_id != player_id or not prop.mortgaged:
            return False

        cost = self.unmortgage_cost(space_id)
        if player.rubles < cost:
            return False

        self.transfer(player_id, None, cost)
        self.state.properties.update(space_id, mortgaged=False)

        self.state.event_log.log(
            EventType.UNMORTGAGE,
            player_id,
            f"{player.name} unmortgaged {self.state.board.get_space(space_id).name} for {cost} rubles",
            space_id=space_id,
            amount=cost,
        )
        return True

    # Valuation

    def calculate_wealth(self, player_id: int) -> int:
        """
        Rubles plus property value (halved when mortgaged) plus improvements,
        less any outstanding debt.
        """
        player = self.state.players.get(player_id)
        if player is None:
            return 0

        wealth = player.rubles
        for prop in self.state.properties.owned_by(player_id):
            cost = self.state.board.base_cost(prop.space_id)
            wealth += cost // 2 if prop.mortgaged else cost
            wealth += prop.collectivization_level * self.state.config.improvement_value
        if player.debt is not None:
            wealth -= player.debt.amount
        return wealth

    def wealthiest_player_id(self) -> Optional[int]:
        """The active player with the highest wealth; ties go to the earliest seat."""
        active = self.state.players.active()
        if not active:
            return None
        return max(active, key=lambda p: self.calculate_wealth(p.player_id)).player_id

    def revolutionary_contribution(self, player_id: int) -> int:
        """Share-of-wealth option for the Revolutionary Contribution tax."""
        wealth = max(0, self.calculate_wealth(player_id))
        return int(math.floor(wealth * self.state.config.revolutionary_contribution_rate))
