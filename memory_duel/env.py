import numpy as np
import gymnasium as gym
from gymnasium import spaces

from memory_duel.cards import Card, N_CARDS, N_PAIRS, deal
from memory_duel.memory_duel_game import GameConfig, GameController, GameListener, Phase, Side


class _RevealLog(GameListener):
    def __init__(self):
        self.revealed: list[tuple[int, int]] = []
        self.outcome: bool | None = None

    def on_reveal(self, card: Card):
        self.revealed.append((card.index, card.picture_id))

    def on_game_won(self):
        self.outcome = True

    def on_game_lost(self):
        self.outcome = False


class MemoryDuelEnv(gym.Env):
    """
    The player's side of a memory duel as a gymnasium environment.

    An action is the index of the card to flip. Whenever the agent completes
    its two flips, the environment plays out the evaluation and the
    opponent's whole turn before returning, so every observation is taken on
    the agent's turn (or at the end of the game).

    The observation is a dict with:
    - seen: for each card, 0 if its picture was never shown, its picture id
      (1..8) if it was, N_PAIRS+1 once the card is matched
    - face_up: 1 for cards currently face up
    Cards revealed since the last step (by either side) are also listed in
    info['revealed'] as (card, picture) pairs.
    """
    metadata = {"render_modes": []}

    REMOVED = N_PAIRS + 1

    def __init__(self, config: GameConfig = GameConfig(), max_steps=None):
        self.config = config
        self.max_steps = max_steps if max_steps is not None else 2**N_PAIRS
        self.observation_space = spaces.Dict({
            'seen': spaces.MultiDiscrete(np.full(N_CARDS, N_PAIRS + 2)),
            'face_up': spaces.MultiBinary(N_CARDS),
        })
        self.action_space = spaces.Discrete(N_CARDS)
        self.controller = None
        self.log = None
        self.seen = None
        self.steps = None

    def observe(self):
        for index, picture_id in self.log.revealed:
            self.seen[index] = picture_id
        for card in self.controller.cards:
            if card.disabled:
                self.seen[card.index] = self.REMOVED
        face_up = np.array([card.face_up for card in self.controller.cards], dtype=np.int8)
        return {'seen': self.seen.copy(), 'face_up': face_up}

    def _info(self):
        score = self.controller.score
        info = {
            'revealed': list(self.log.revealed),
            'player_score': score.player,
            'opponent_score': score.opponent,
            'pairs_remaining': score.pairs_remaining,
        }
        if self.controller.winner is not None:
            info['player_won'] = self.controller.winner is Side.PLAYER
        return info

    @property
    def timed_out(self):
        return self.steps >= self.max_steps

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        self.log = _RevealLog()
        self.controller = GameController(
            cards=deal(self.np_random), listener=self.log, rng=self.np_random, config=self.config,
        )
        self.seen = np.zeros(N_CARDS, dtype=np.int64)
        self.steps = 0
        obs = self.observe()
        info = self._info()
        self.log.revealed.clear()
        return obs, info

    def step(self, action):
        controller = self.controller
        if controller.game_over:
            # Nothing left to flip or score
            info = self._info()
            info['invalid'] = False
            return self.observe(), 0.0, True, False, info

        self.steps += 1
        before = controller.score.player, controller.score.opponent

        invalid = not controller.request_flip(controller.cards[int(action)])
        if invalid:
            # Card is up or already matched
            reward = -1.0
        else:
            if controller.phase is Phase.EVALUATING:
                # Play out the evaluation and the opponent's turn
                controller.scheduler.run_until(
                    lambda: controller.phase in (Phase.IDLE, Phase.GAME_OVER)
                )
            reward = float(controller.score.player - before[0]) - float(controller.score.opponent - before[1])

        term = controller.game_over
        if term:
            controller.scheduler.run_until_idle()
            assert self.log.outcome == (controller.winner is Side.PLAYER)
            reward += 100.0 if self.log.outcome else -100.0

        obs = self.observe()
        info = self._info()
        info['invalid'] = invalid
        self.log.revealed.clear()
        return obs, reward, term, self.timed_out and not term, info
