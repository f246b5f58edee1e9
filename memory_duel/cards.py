from dataclasses import dataclass
from typing import Iterable

import numpy as np


N_PAIRS = 8
N_CARDS = 2 * N_PAIRS


@dataclass(eq=False)
class Card:
    index: int # slot on the board, 0..N_CARDS-1
    picture_id: int # 1..N_PAIRS, each shared by exactly two cards
    face_up: bool = False
    disabled: bool = False # matched and removed from play

    @property
    def enabled(self) -> bool:
        return not self.disabled

    def __repr__(self) -> str:
        flags = ('up' if self.face_up else 'down') + (', disabled' if self.disabled else '')
        return f'Card({self.index}, picture={self.picture_id}, {flags})'


def deal(rng: np.random.Generator | None = None) -> list[Card]:
    """Shuffle the pictures {1,1,2,2,...,8,8} onto a fresh deck."""
    if rng is None:
        rng = np.random.default_rng()
    picture_ids = rng.permutation(np.repeat(np.arange(1, N_PAIRS + 1), 2))
    return make_deck(int(p) for p in picture_ids)


def make_deck(picture_ids: Iterable[int]) -> list[Card]:
    cards = [Card(index, picture_id) for index, picture_id in enumerate(picture_ids)]
    check_deck(cards)
    return cards


def check_deck(cards: list[Card]):
    if len(cards) != N_CARDS:
        raise ValueError(f"Deck must have {N_CARDS} cards, got {len(cards)}")
    counts = np.bincount([card.picture_id for card in cards], minlength=N_PAIRS + 1)
    if counts[0] != 0 or len(counts) != N_PAIRS + 1 or not (counts[1:] == 2).all():
        raise ValueError(f"Each picture 1..{N_PAIRS} must appear on exactly two cards")
    if [card.index for card in cards] != list(range(N_CARDS)):
        raise ValueError("Cards must be indexed by their slot on the board")
