"""Scripted players and head-to-head evaluation against the memory opponent.

Run as `memory-duel play` for an interactive match or `memory-duel eval` to
measure how often a scripted player beats the opponent.
"""

from typing import Callable, Literal

from matplotlib import pyplot as plt
import numpy as np
import tyro

from memory_duel import rl
from memory_duel.env import MemoryDuelEnv
from memory_duel.interactive import InteractiveMatch
from memory_duel.memory_duel_game import GameConfig
from memory_duel.opponent import FirstFlipPool


def _face_down(obs) -> np.ndarray:
    return (obs['seen'] != MemoryDuelEnv.REMOVED) & (obs['face_up'] == 0)


def make_random_policy(rng: np.random.Generator | None = None) -> Callable[[dict], int]:
    """Flips any face-down card, remembering nothing."""
    if rng is None:
        rng = np.random.default_rng()

    def policy(obs):
        return int(rng.choice(np.flatnonzero(_face_down(obs))))

    return policy


def make_perfect_memory_policy(rng: np.random.Generator | None = None) -> Callable[[dict], int]:
    """Never forgets a picture: completes known pairs, explores otherwise."""
    if rng is None:
        rng = np.random.default_rng()

    def policy(obs):
        seen = obs['seen']
        face_down = _face_down(obs)
        face_up = np.flatnonzero((obs['face_up'] == 1) & (seen != MemoryDuelEnv.REMOVED))
        unseen = np.flatnonzero(face_down & (seen == 0))

        if len(face_up) == 1:
            partner = np.flatnonzero(face_down & (seen == seen[face_up[0]]))
            if len(partner) > 0:
                return int(partner[0])
        else:
            known = seen[face_down & (seen > 0)]
            pictures, counts = np.unique(known, return_counts=True)
            if (counts == 2).any():
                # Start with a known pair
                return int(np.flatnonzero(face_down & (seen == pictures[counts == 2][0]))[0])
        if len(unseen) > 0:
            return int(rng.choice(unseen))
        return int(rng.choice(np.flatnonzero(face_down)))

    return policy


POLICIES = {
    'random': make_random_policy,
    'perfect_memory': make_perfect_memory_policy,
}


def evaluate(
    policy: Literal['random', 'perfect_memory'] = 'random',
    n: int = 1000,
    seed: int | None = None,
    first_flip_pool: FirstFlipPool = FirstFlipPool.UNSEEN,
    plot: str | None = None,
) -> dict[str, np.ndarray]:
    """Play `n` games of a scripted player against the memory opponent.

    Args:
        policy: Which scripted player plays the human side.
        n: Number of games.
        seed: Seed for the games and the player (random if not given).
        first_flip_pool: Where the opponent draws its first card from.
        plot: If given, save a histogram of score margins to this path
            ('-' shows it instead).
    """
    env = MemoryDuelEnv(GameConfig(first_flip_pool=first_flip_pool))
    player = POLICIES[policy](np.random.default_rng(seed))
    stats = (
        rl.Stats.return_,
        rl.Stats.won,
        rl.Stats.margin,
        rl.Stats.length,
        rl.Stats.terminated,
        rl.Stats.invalid_actions,
    )
    returns, wins, margins, lens, terms, n_invalid = rl.evals(env, player, stats, n=n, seed=seed, progress=True)

    print(f'{policy} player win rate: {wins.mean():.3f} +- {wins.std():.2f}')
    print(f'score margin (player - opponent): {margins.mean():.2f} +- {margins.std():.2f}')
    print(f'player flips per game: {lens.mean():.1f} +- {lens.std():.1f}')
    print(f'return: {returns.mean():.2f} +- {returns.std():.2f}')
    if not terms.all():
        print(f'WARNING: {np.sum(~terms)} games hit the step limit')
    if n_invalid.any():
        print(f'WARNING: {n_invalid.sum()} illegal flips were ignored')

    if plot is not None:
        bins = np.arange(-8.5, 9.5)
        plt.hist(margins, bins=bins)
        plt.title(f'{policy} player vs memory opponent ({n} games)')
        plt.xlabel('Score margin (player - opponent)')
        plt.ylabel('Games')
        if plot == '-':
            plt.show()
        else:
            plt.savefig(plot)
        plt.close()

    return {'returns': returns, 'wins': wins, 'margins': margins, 'lens': lens}


def play(
    width: int = 800,
    height: int = 600,
    seed: int | None = None,
    opponent_name: str = 'Lilith',
    reveal_delay: float = 2.0,
    first_flip_pool: FirstFlipPool = FirstFlipPool.UNSEEN,
):
    """Play a match in a pygame window."""
    config = GameConfig(reveal_delay=reveal_delay, opponent_name=opponent_name, first_flip_pool=first_flip_pool)
    outcome = InteractiveMatch(width=width, height=height, config=config, seed=seed).play()
    if outcome is not None:
        print('You won!' if outcome else f'{opponent_name} won!')


def main(args=None):
    tyro.extras.subcommand_cli_from_dict({'play': play, 'eval': evaluate}, args=args)


if __name__ == '__main__':
    main()
