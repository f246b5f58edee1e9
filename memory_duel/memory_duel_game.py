from dataclasses import dataclass
from enum import Enum, IntEnum
from logging import debug, info, warning
from typing import Sequence

import numpy as np

from memory_duel.cards import Card, N_PAIRS, check_deck, deal
from memory_duel.opponent import FirstFlipPool, MemoryPartition, OpponentMove, select_opponent_move
from memory_duel.scheduler import VirtualClock


@dataclass(frozen=True)
class GameConfig:
    reveal_delay: float = 2.0 # pause with two cards up, also between opponent flips
    end_delay: float = 1.5 # pause between the last match and the session signal
    opponent_name: str = 'Lilith'
    first_flip_pool: FirstFlipPool = FirstFlipPool.UNSEEN


class Side(Enum):
    PLAYER = 'player'
    OPPONENT = 'opponent'

    @property
    def other(self) -> 'Side':
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


class TurnState(IntEnum):
    NO_CARD_UP = 0
    ONE_CARD_UP = 1
    TWO_CARD_UP = 2


class Phase(Enum):
    IDLE = 0 # player to flip a first card
    AWAITING_SECOND_FLIP = 1 # player to flip a second card
    EVALUATING = 2 # two cards up, waiting for the reveal delay
    OPPONENT_MOVING = 3 # opponent flips are scheduled
    GAME_OVER = 4


@dataclass
class ScoreState:
    player: int = 0
    opponent: int = 0
    pairs_remaining: int = N_PAIRS

    def add_match(self, side: Side):
        if side is Side.PLAYER:
            self.player += 1
        else:
            self.opponent += 1
        self.pairs_remaining -= 1
        assert self.player + self.opponent + self.pairs_remaining == N_PAIRS


class GameListener:
    """Receives everything the rendering, display and session layers need.

    All methods do nothing by default.
    """

    def on_reveal(self, card: Card): pass

    def on_hide(self, card: Card): pass

    def on_disable(self, card: Card): pass

    def on_turn_text(self, text: str): pass

    def on_score_text(self, player_text: str, opponent_text: str): pass

    def on_game_won(self): pass

    def on_game_lost(self): pass


class GameController:
    """
    Turn and scoring rules of a player-vs-opponent memory duel.

    The player flips cards through request_flip; the opponent's flips are
    scheduled by the controller itself. After two flips the cards stay up for
    `reveal_delay`, then a match removes them and scores for whoever flipped
    them, a mismatch turns them back down. Either way the turn passes to the
    other side. All delays go through the injected scheduler.
    """

    def __init__(
        self,
        cards: Sequence[Card] | None = None,
        listener: GameListener | None = None,
        scheduler: VirtualClock | None = None,
        rng: np.random.Generator | None = None,
        config: GameConfig = GameConfig(),
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        if cards is None:
            cards = deal(self.rng)
        self.cards = list(cards)
        check_deck(self.cards)
        if any(card.face_up or card.disabled for card in self.cards):
            raise ValueError("All cards must start face down and in play")

        self.listener = listener if listener is not None else GameListener()
        self.scheduler = scheduler if scheduler is not None else VirtualClock()
        self.config = config

        self.memory = MemoryPartition(self.cards)
        self.score = ScoreState()
        self.turn_owner = Side.PLAYER
        self.turn_state = TurnState.NO_CARD_UP
        self.phase = Phase.IDLE
        self.first_card: Card | None = None
        self.second_card: Card | None = None
        self.winner: Side | None = None
        self.turns = 0 # completed two-card evaluations
        self._session_signalled = False

        self.listener.on_turn_text(self.turn_text())
        self._publish_scores()

    # Labels

    def turn_text(self) -> str:
        if self.turn_owner is Side.PLAYER:
            return 'Your Turn!'
        return f"{self.config.opponent_name}'s Turn!"

    def result_text(self) -> str:
        assert self.winner is not None
        if self.winner is Side.PLAYER:
            return 'You Won!'
        return f'{self.config.opponent_name} Won!'

    def _publish_scores(self):
        self.listener.on_score_text(
            f'Your Score: {self.score.player}',
            f"{self.config.opponent_name}'s Score: {self.score.opponent}",
        )

    # State

    @property
    def is_player_turn(self) -> bool:
        return self.turn_owner is Side.PLAYER

    @property
    def enabled_cards(self) -> list[Card]:
        return [card for card in self.cards if card.enabled]

    @property
    def game_over(self) -> bool:
        return self.phase is Phase.GAME_OVER

    def _owns(self, card: Card) -> bool:
        return 0 <= card.index < len(self.cards) and self.cards[card.index] is card

    # Flipping

    def request_flip(self, card: Card) -> bool:
        """Flip `card` for the player, if that is legal right now.

        Illegal requests (opponent's turn, pending evaluation, card already up
        or out of play) are ignored and return False.
        """
        if self.phase not in (Phase.IDLE, Phase.AWAITING_SECOND_FLIP):
            debug(f'Ignoring flip of {card} during {self.phase.name}')
            return False
        assert self.is_player_turn
        if not self._owns(card) or card.disabled or card.face_up:
            debug(f'Ignoring flip of {card}')
            return False
        self._flip(card)
        return True

    def _flip(self, card: Card):
        self.memory.observe(card)
        card.face_up = True
        self.listener.on_reveal(card)
        self.advance_state(card)

    def advance_state(self, card: Card):
        if self.turn_state is TurnState.NO_CARD_UP:
            self.first_card = card
            self.turn_state = TurnState.ONE_CARD_UP
            if self.is_player_turn:
                self.phase = Phase.AWAITING_SECOND_FLIP
        elif self.turn_state is TurnState.ONE_CARD_UP:
            self.second_card = card
            self.turn_state = TurnState.TWO_CARD_UP
            self.phase = Phase.EVALUATING
            self.scheduler.call_later(self.config.reveal_delay, self.evaluate_two_cards)
        else:
            warning(f'{card} flipped with two cards already up')

    # Evaluation

    def evaluate_two_cards(self):
        assert self.phase is Phase.EVALUATING and self.turn_state is TurnState.TWO_CARD_UP
        if self.first_card.picture_id == self.second_card.picture_id:
            self._evaluate_matching_cards()
        else:
            self._reset_two_cards()

        self.first_card = None
        self.second_card = None
        self.turn_state = TurnState.NO_CARD_UP
        self.turn_owner = self.turn_owner.other
        self.turns += 1

        if self.score.pairs_remaining == 0:
            self._finish()
        elif self.is_player_turn:
            self.phase = Phase.IDLE
            self.listener.on_turn_text(self.turn_text())
        else:
            self.listener.on_turn_text(self.turn_text())
            self._start_opponent_move()

    def _evaluate_matching_cards(self):
        for card in (self.first_card, self.second_card):
            card.disabled = True
            card.face_up = False
            self.listener.on_disable(card)
        self.memory.forget_pair(self.first_card, self.second_card)
        self.score.add_match(self.turn_owner)
        self._publish_scores()

    def _reset_two_cards(self):
        for card in (self.first_card, self.second_card):
            card.face_up = False
            self.listener.on_hide(card)

    def _finish(self):
        self.phase = Phase.GAME_OVER
        self.winner = Side.PLAYER if self.score.player >= self.score.opponent else Side.OPPONENT
        info(f'Game over: {self.score.player} to {self.score.opponent}, {self.winner.value} wins')
        self.listener.on_turn_text(self.result_text())
        self.scheduler.call_later(self.config.end_delay, self._signal_session)

    def _signal_session(self):
        if self._session_signalled:
            return
        self._session_signalled = True
        if self.winner is Side.PLAYER:
            self.listener.on_game_won()
        else:
            self.listener.on_game_lost()

    # Opponent

    def _start_opponent_move(self):
        self.phase = Phase.OPPONENT_MOVING
        move = select_opponent_move(
            self.memory.snapshot(), self.score.pairs_remaining, self.rng, self.config.first_flip_pool,
        )
        debug(f'Opponent plans {move}')
        self.scheduler.call_later(self.config.reveal_delay, self._opponent_first_flip, move)

    def _opponent_first_flip(self, move: OpponentMove):
        self._opponent_flip(move.first)
        self.scheduler.call_later(self.config.reveal_delay, self._opponent_flip, move.second)

    def _opponent_flip(self, card: Card):
        if not self._owns(card) or card.disabled or card.face_up:
            raise RuntimeError(f'Opponent chose {card}, which cannot be flipped')
        self._flip(card)
