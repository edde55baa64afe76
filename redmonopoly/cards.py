"""
Party Directive and Communist Test decks.

Card effects are resolved by the content layer; the engine only draws,
discards, holds and reshuffles.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import random


class DeckType(Enum):
    """The two card decks on the board."""

    PARTY_DIRECTIVE = "party_directive"
    COMMUNIST_TEST = "communist_test"


@dataclass(frozen=True)
class Card:
    """A card identified by id. ``keepable`` cards are held until used."""

    card_id: str
    deck_type: DeckType
    title: str = ""
    keepable: bool = False

    def __repr__(self) -> str:
        return f"Card('{self.card_id}')"


class Deck:
    """A deck of cards that can be shuffled and drawn from."""

    def __init__(self, deck_type: DeckType, cards: List[Card], rng: random.Random):
        self.deck_type = deck_type
        self.cards = cards.copy()
        self.rng = rng
        self.discard_pile: List[Card] = []
        self.held_cards: List[Card] = []
        self.shuffle()

    def shuffle(self) -> None:
        """Shuffle the deck."""
        self.rng.shuffle(self.cards)

    def draw(self) -> Optional[Card]:
        """
        Draw a card from the top of the deck.
        If the deck is empty, the discard pile is shuffled back in first.
        Returns None when every card is held by players.
        """
        if not self.cards:
            if not self.discard_pile:
                return None
            self.cards = self.discard_pile.copy()
            self.discard_pile.clear()
            self.shuffle()

        return self.cards.pop(0)

    def peek(self) -> Optional[Card]:
        """Look at the card ``draw`` would return next, without drawing it."""
        if not self.cards and self.discard_pile:
            self.cards = self.discard_pile.copy()
            self.discard_pile.clear()
            self.shuffle()
        return self.cards[0] if self.cards else None

    def discard(self, card: Card) -> None:
        """Put a card on the discard pile."""
        self.discard_pile.append(card)

    def hold_card(self, card: Card) -> None:
        """Mark a card as being held by a player."""
        self.held_cards.append(card)

    def return_held_card(self) -> Optional[Card]:
        """Return one held card to the discard pile."""
        if not self.held_cards:
            return None
        card = self.held_cards.pop(0)
        self.discard(card)
        return card


PARTY_DIRECTIVE_TITLES = [
    "ADVANCE TO STOY",
    "LABOUR REASSIGNMENT",
    "PARTY BONUS",
    "COUNTER-REVOLUTIONARY ACTIVITY DETECTED",
    "REHABILITATION COMPLETE",
    "PRODUCTION QUOTA MET",
    "VOLUNTARY DONATION",
    "ADVANCE TO MINISTRY OF LOVE",
    "GO BACK THREE SPACES",
    "PROPERTY TAX",
    "DENOUNCED!",
    "PARTY RECOGNITION",
    "ADVANCE TO NEAREST RAILWAY",
    "BANK ERROR IN YOUR FAVOUR",
    "GO TO BREADLINE",
    "STREET REPAIRS",
    "YOU ARE ASSESSED FOR STREET REPAIRS",
    "ADVANCE TO KREMLIN COMPLEX",
    "GENERAL REPAIRS",
    "SURPRISE INSPECTION",
]

# The Gulag release card is kept by the drawer
GULAG_RELEASE_CARD_ID = "pd-5"

COMMUNIST_TEST_DIFFICULTIES = {"easy": 10, "medium": 10, "hard": 10, "trick": 5}


def create_party_directive_deck(rng: random.Random) -> Deck:
    """Create the Party Directive deck."""
    cards = [
        Card(
            f"pd-{index}",
            DeckType.PARTY_DIRECTIVE,
            title,
            keepable=f"pd-{index}" == GULAG_RELEASE_CARD_ID,
        )
        for index, title in enumerate(PARTY_DIRECTIVE_TITLES, start=1)
    ]
    return Deck(DeckType.PARTY_DIRECTIVE, cards, rng)


def create_communist_test_deck(rng: random.Random) -> Deck:
    """Create the Communist Test deck."""
    cards = [
        Card(f"{difficulty}-{index}", DeckType.COMMUNIST_TEST, f"{difficulty.title()} question")
        for difficulty, count in COMMUNIST_TEST_DIFFICULTIES.items()
        for index in range(1, count + 1)
    ]
    return Deck(DeckType.COMMUNIST_TEST, cards, rng)
