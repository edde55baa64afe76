"""
Pending actions and the decisions that resume them.

While a pending action is outstanding the turn is suspended in the
``AWAITING_INPUT`` phase. Each suspension kind has its own payload type and a
matching decision type; both meet in ``TurnScheduler.resolve_pending_action``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, FrozenSet, Optional, Tuple

from redmonopoly.cards import DeckType


class PendingKind(Enum):
    """Every kind of decision the engine can wait for."""

    STOY_PILFER = "stoy-pilfer"
    PROPERTY_PURCHASE = "property-purchase"
    QUOTA_PAYMENT = "quota-payment"
    RAILWAY_FEE = "railway-fee"
    UTILITY_FEE = "utility-fee"
    TAX_PAYMENT = "tax-payment"
    DRAW_CARD = "draw-card"
    BREADLINE_CONTRIBUTION = "breadline-contribution"
    GULAG_ESCAPE_CHOICE = "gulag-escape-choice"
    VOUCHER_REQUEST = "voucher-request"
    INFORM_VERDICT = "inform-verdict"
    BRIBE_VERDICT = "bribe-verdict"
    CONFESSION_REVIEW = "confession-review"
    CAMP_LABOUR_APPROVAL = "camp-labour-approval"
    RULE_REWRITE_APPROVAL = "rule-rewrite-approval"
    PRAVDA_REVOTE = "pravda-revote"


class EscapeMethod(Enum):
    """Ways out of the Gulag."""

    ROLL = "roll"
    PAY = "pay"
    VOUCH = "vouch"
    INFORM = "inform"
    BRIBE = "bribe"
    CARD = "card"
    CONFESSION = "confession"


@dataclass(frozen=True)
class PendingAction:
    """Base payload; ``player_id`` is the player the decision belongs to."""

    kind: ClassVar[PendingKind]

    player_id: int


@dataclass(frozen=True)
class StoyPilfer(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.STOY_PILFER


@dataclass(frozen=True)
class PropertyPurchase(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.PROPERTY_PURCHASE

    space_id: int
    price: int


@dataclass(frozen=True)
class QuotaPayment(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.QUOTA_PAYMENT

    space_id: int
    custodian_id: int
    amount: int


@dataclass(frozen=True)
class RailwayFee(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.RAILWAY_FEE

    space_id: int
    custodian_id: int
    amount: int


@dataclass(frozen=True)
class UtilityFee(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.UTILITY_FEE

    space_id: int
    custodian_id: int
    amount: int
    dice_total: int


@dataclass(frozen=True)
class TaxPayment(PendingAction):
    """``alternative_amount`` is the wealth-share option when the space offers a choice."""

    kind: ClassVar[PendingKind] = PendingKind.TAX_PAYMENT

    space_id: int
    amount: int
    alternative_amount: Optional[int]
    demotes: bool


@dataclass(frozen=True)
class DrawCard(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.DRAW_CARD

    deck_type: DeckType


@dataclass(frozen=True)
class BreadlineContribution(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.BREADLINE_CONTRIBUTION

    contributor_ids: Tuple[int, ...]


@dataclass(frozen=True)
class GulagEscapeChoice(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.GULAG_ESCAPE_CHOICE

    required_doubles: Tuple[int, ...]


@dataclass(frozen=True)
class VoucherRequest(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.VOUCHER_REQUEST

    voucher_id: int


@dataclass(frozen=True)
class InformVerdict(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.INFORM_VERDICT

    accused_id: int


@dataclass(frozen=True)
class BribeVerdict(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.BRIBE_VERDICT

    amount: int


@dataclass(frozen=True)
class ConfessionReview(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.CONFESSION_REVIEW

    confession: str


@dataclass(frozen=True)
class CampLabourApproval(PendingAction):
    """The Siberian Camps custodian asks Stalin to send ``target_id`` to forced labour."""

    kind: ClassVar[PendingKind] = PendingKind.CAMP_LABOUR_APPROVAL

    target_id: int


@dataclass(frozen=True)
class RuleRewriteApproval(PendingAction):
    kind: ClassVar[PendingKind] = PendingKind.RULE_REWRITE_APPROVAL

    new_rule: str


@dataclass(frozen=True)
class PravdaRevote(PendingAction):
    """Announcement of a forced re-vote; the custodian acknowledges it."""

    kind: ClassVar[PendingKind] = PendingKind.PRAVDA_REVOTE

    decision: str


# Decisions


@dataclass(frozen=True)
class Acknowledge:
    """Confirms a payment or a card draw."""


@dataclass(frozen=True)
class PurchaseDecision:
    buy: bool


@dataclass(frozen=True)
class PilferDecision:
    """``roll`` overrides the die; None rolls with the game RNG."""

    attempt: bool
    roll: Optional[int] = None


@dataclass(frozen=True)
class TaxDecision:
    pay_alternative: bool = False


@dataclass(frozen=True)
class BreadlineDecision:
    """Players in ``contributors`` hand over rubles; everyone else refuses."""

    contributors: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class EscapeDecision:
    method: EscapeMethod
    dice: Optional[Tuple[int, int]] = None
    voucher_id: Optional[int] = None
    accused_id: Optional[int] = None
    amount: int = 0
    confession: str = ""


@dataclass(frozen=True)
class VerdictDecision:
    """Yes/no answer from the voucher or from Stalin."""

    approved: bool
