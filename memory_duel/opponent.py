"""
The opponent's memory and how it picks cards.

The opponent remembers one card for every picture it has seen flipped (by
either side) but not yet matched. All other enabled cards are unseen. On its
turn the opponent never starts from a card it remembers: the first card is
drawn from the unseen cards. If that card's picture is already remembered
(its partner was seen earlier) the opponent usually goes for the partner,
otherwise it flips another unseen card at random.
"""

from enum import Enum
from logging import warning
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple

import numpy as np

from memory_duel.cards import Card


# Chance of going for a remembered partner when more than one pair is left
RECALL_PROBABILITY = 0.75


class FirstFlipPool(Enum):
    UNSEEN = 'unseen' # only cards the opponent has not seen
    ENABLED = 'enabled' # any card still in play, remembered ones included


class MemorySnapshot(NamedTuple):
    remembered: Mapping[int, Card] # picture id -> remembered card
    unseen: tuple[Card, ...] # in board order

    @property
    def enabled(self) -> tuple[Card, ...]:
        return tuple(sorted((*self.unseen, *self.remembered.values()), key=lambda card: card.index))


class OpponentMove(NamedTuple):
    first: Card
    second: Card
    recalled: bool # second card was picked from memory


class MemoryPartition:
    def __init__(self, cards: Iterable[Card]):
        self.remembered: dict[int, Card] = {}
        self.unseen: list[Card] = [card for card in cards if card.enabled]

    def __len__(self):
        return len(self.remembered) + len(self.unseen)

    def observe(self, card: Card) -> bool:
        """Record that the opponent saw `card` face up.

        Returns True if the picture was new to the opponent. A card whose
        picture is already remembered (through its partner) stays unseen.
        """
        if card.picture_id in self.remembered:
            return False
        try:
            self.unseen.remove(card)
        except ValueError:
            warning(f'{card} with a new picture was not among the unseen cards')
        self.remembered[card.picture_id] = card
        return True

    def forget_pair(self, first: Card, second: Card):
        """Drop a matched pair: its remembered card and the one still unseen."""
        assert first.picture_id == second.picture_id
        if self.remembered.pop(first.picture_id, None) is None:
            warning(f'Picture {first.picture_id} was not remembered when matched')
        for card in (first, second):
            if card in self.unseen:
                self.unseen.remove(card)
                break
        else:
            warning(f'Neither {first} nor {second} was left among the unseen cards')

    def snapshot(self) -> MemorySnapshot:
        return MemorySnapshot(MappingProxyType(dict(self.remembered)), tuple(self.unseen))


def _draw(cards: tuple[Card, ...], rng: np.random.Generator) -> int:
    if len(cards) == 0:
        raise RuntimeError('Opponent has no card to choose from, turn scheduling is broken')
    return int(rng.integers(len(cards)))


def select_opponent_move(
    memory: MemorySnapshot,
    pairs_remaining: int,
    rng: np.random.Generator,
    pool: FirstFlipPool = FirstFlipPool.UNSEEN,
) -> OpponentMove:
    """Choose both cards of the opponent's turn without touching the memory.

    The caller applies memory updates as each card is actually flipped.
    """
    candidates = memory.unseen if pool is FirstFlipPool.UNSEEN else memory.enabled
    index = _draw(candidates, rng)
    first = candidates[index]

    partner = memory.remembered.get(first.picture_id)
    if partner is None or partner is first:
        # Picture is new (or only this very card is remembered): after the
        # flip it leaves the unseen cards, so pick any other unseen card
        unseen = tuple(card for card in memory.unseen if card is not first)
        second = unseen[_draw(unseen, rng)]
        return OpponentMove(first, second, recalled=False)

    prob = rng.random()
    if pairs_remaining == 1 or prob < RECALL_PROBABILITY:
        return OpponentMove(first, partner, recalled=True)

    # Deliberate miss: a random unseen card other than the first one
    index_two = _draw(memory.unseen, rng)
    if memory.unseen[index_two] is first:
        index_two = 1 if index_two == 0 else index_two - 1
    return OpponentMove(first, memory.unseen[index_two], recalled=False)
