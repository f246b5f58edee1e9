import numpy as np
import pytest

from memory_duel.cards import make_deck
from memory_duel.memory_duel_game import GameConfig, GameController, GameListener, ScoreState
from memory_duel.opponent import MemoryPartition
from memory_duel.scheduler import VirtualClock


SCENARIO = [1, 2, 1, 2, 3, 4, 3, 4, 5, 6, 5, 6, 7, 8, 7, 8]


class ScriptedRng:
    """Stands in for a numpy Generator, replaying fixed draws."""

    def __init__(self, integers=(), randoms=()):
        self._integers = list(integers)
        self._randoms = list(randoms)

    def integers(self, n):
        value = self._integers.pop(0)
        assert 0 <= value < n, f'scripted draw {value} out of range({n})'
        return value

    def random(self):
        return self._randoms.pop(0)


class Recorder(GameListener):
    def __init__(self):
        self.events = []
        self.revealed_pictures = set()

    def on_reveal(self, card):
        self.events.append(('reveal', card.index))
        self.revealed_pictures.add(card.picture_id)

    def on_hide(self, card):
        self.events.append(('hide', card.index))

    def on_disable(self, card):
        self.events.append(('disable', card.index))

    def on_turn_text(self, text):
        self.events.append(('turn', text))

    def on_score_text(self, player_text, opponent_text):
        self.events.append(('score', player_text, opponent_text))

    def on_game_won(self):
        self.events.append(('won',))

    def on_game_lost(self):
        self.events.append(('lost',))

    def count(self, kind):
        return sum(1 for event in self.events if event[0] == kind)

    def last(self, kind):
        return [event for event in self.events if event[0] == kind][-1]


@pytest.fixture
def make_game():
    def make(picture_ids=SCENARIO, rng=None, **config):
        return GameController(
            make_deck(picture_ids),
            listener=Recorder(),
            scheduler=VirtualClock(),
            rng=rng if rng is not None else np.random.default_rng(0),
            config=GameConfig(**config),
        )
    return make


def leave_only(game, keep, player=0, opponent=0):
    """Take every card but `keep` out of play, as if matched earlier."""
    for card in game.cards:
        if card.index not in keep:
            card.disabled = True
    game.memory = MemoryPartition(game.cards)
    game.score = ScoreState(player, opponent, len(keep) // 2)
