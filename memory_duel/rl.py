from functools import reduce
from typing import Callable, Iterable, NamedTuple

import numpy as np
import gymnasium as gym
from tqdm import tqdm


# General episode utilities

class TimeStep(NamedTuple):
    state: object
    action: object
    next_state: object
    reward: float
    term: bool
    trunc: bool
    info: dict
    next_info: dict

    @property
    def done(self):
        return self.term or self.trunc

def steps(env: gym.Env, policy: Callable[[object], object], seed=None):
    term = True
    trunc = False
    while True:
        if term or trunc:
            state, info = env.reset(seed=seed)
            seed = None
        action = policy(state)
        next_state, reward, term, trunc, next_info = env.step(action)
        yield TimeStep(state, action, next_state, reward, term, trunc, info, next_info)
        state = next_state
        info = next_info

def episode(env: gym.Env, policy: Callable[[object], object], seed=None):
    # Can't use takewhile here because we need to yield the last step
    for ts in steps(env, policy, seed):
        yield ts
        if ts.done:
            break

class Statistic:
    def __init__(self, op, initial):
        self.op = op
        self.value = initial

    def update(self, ts: TimeStep) -> 'Statistic':
        self.value = self.op(self.value, ts)
        return self

class Stats:
    @staticmethod
    def return_():
        return Statistic(lambda x, ts: x + ts.reward, 0)

    @staticmethod
    def length():
        return Statistic(lambda x, ts: x + 1, 0)

    @staticmethod
    def terminated():
        return Statistic(lambda x, ts: x or ts.term, False)

    @staticmethod
    def won():
        return Statistic(lambda x, ts: ts.next_info.get('player_won', x), False)

    @staticmethod
    def margin():
        return Statistic(lambda x, ts: ts.next_info['player_score'] - ts.next_info['opponent_score'], 0)

    @staticmethod
    def invalid_actions():
        return Statistic(lambda n, ts: n + int(ts.next_info.get('invalid', False)), 0)

def eval_policy(env: gym.Env, policy: Callable[[object], object], statistics: Iterable[Statistic] = (), seed=None) -> tuple:
    return map(
        lambda stat: stat.value,
        reduce(
            lambda stats, ts: tuple(stat.update(ts) for stat in stats),
            episode(env, policy, seed),
            tuple(statistics),
        )
    )

def evals(env: gym.Env, policy: Callable[[object], object], make_stat_fns, n=10, seed=None, progress=False) -> tuple[np.ndarray, ...]:
    episodes = tqdm(range(n), desc='games', disable=not progress)
    stats = list(zip(*[
        eval_policy(env, policy, (make_stat() for make_stat in make_stat_fns), seed=None if seed is None else seed + i)
        for i in episodes
    ]))
    return tuple(np.array(stat) for stat in stats)
