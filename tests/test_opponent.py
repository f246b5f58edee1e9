import logging

import numpy as np
import pytest

from memory_duel.cards import Card
from memory_duel.opponent import (
    FirstFlipPool,
    MemoryPartition,
    MemorySnapshot,
    RECALL_PROBABILITY,
    select_opponent_move,
)

from conftest import ScriptedRng


def cards(*picture_ids):
    return [Card(index, picture_id) for index, picture_id in enumerate(picture_ids)]


def test_observe_moves_new_pictures_to_memory():
    a, b, c, d = cards(1, 2, 1, 2)
    memory = MemoryPartition([a, b, c, d])
    assert memory.observe(a)
    assert memory.remembered == {1: a}
    assert memory.unseen == [b, c, d]
    assert not memory.observe(c)
    assert memory.remembered == {1: a}
    assert memory.unseen == [b, c, d]
    assert len(memory) == 4


def test_partition_skips_disabled_cards():
    a, b, c, d = cards(1, 2, 1, 2)
    a.disabled = c.disabled = True
    memory = MemoryPartition([a, b, c, d])
    assert memory.unseen == [b, d]


def test_forget_pair():
    a, b, c, d = cards(1, 2, 1, 2)
    memory = MemoryPartition([a, b, c, d])
    memory.observe(a)
    memory.observe(c)
    memory.forget_pair(a, c)
    assert memory.remembered == {}
    assert memory.unseen == [b, d]


def test_forget_pair_reports_missing_entries(caplog):
    a, b, c, d = cards(1, 2, 1, 2)
    memory = MemoryPartition([a, b, c, d])
    memory.unseen.remove(a)
    memory.unseen.remove(c)
    with caplog.at_level(logging.WARNING):
        memory.forget_pair(a, c)
    assert 'Picture 1 was not remembered' in caplog.text
    assert 'unseen' in caplog.text
    assert memory.unseen == [b, d]


def test_snapshot_is_detached():
    a, b = cards(1, 1)
    memory = MemoryPartition([a, b])
    snapshot = memory.snapshot()
    memory.observe(a)
    assert snapshot.unseen == (a, b)
    assert dict(snapshot.remembered) == {}
    with pytest.raises(TypeError):
        snapshot.remembered[1] = a


def test_new_picture_draws_second_card_from_the_rest():
    a, b, c = cards(1, 2, 1)
    snapshot = MemorySnapshot({}, (a, b, c))
    move = select_opponent_move(snapshot, 8, ScriptedRng(integers=[0, 1]))
    # a leaves the unseen cards, index 1 of (b, c) is c: an accidental match
    assert move == (a, c, False)


def test_remembered_partner_is_recalled():
    p, x, y, z = cards(5, 5, 6, 7)
    snapshot = MemorySnapshot({5: p}, (x, y, z))
    move = select_opponent_move(snapshot, 4, ScriptedRng(integers=[0], randoms=[RECALL_PROBABILITY - 0.01]))
    assert move == (x, p, True)


@pytest.mark.parametrize('unseen_order, integers, expected', [
    # first card at index 0, collision shifts up to index 1
    ('xyz', [0, 0], 'y'),
    # first card at index 1, collision shifts down to index 0
    ('yxz', [1, 1], 'y'),
    # no collision
    ('xyz', [0, 2], 'z'),
])
def test_missed_recall_picks_another_unseen_card(unseen_order, integers, expected):
    p, x, y, z = cards(5, 5, 6, 7)
    by_name = {'x': x, 'y': y, 'z': z}
    snapshot = MemorySnapshot({5: p}, tuple(by_name[name] for name in unseen_order))
    move = select_opponent_move(snapshot, 3, ScriptedRng(integers=integers, randoms=[RECALL_PROBABILITY]))
    assert move == (x, by_name[expected], False)


def test_last_pair_is_always_recalled():
    p, x = cards(5, 5)
    snapshot = MemorySnapshot({5: p}, (x,))
    move = select_opponent_move(snapshot, 1, ScriptedRng(integers=[0], randoms=[0.99]))
    assert move == (x, p, True)


def test_empty_pool_is_fatal():
    p, x = cards(5, 6)
    snapshot = MemorySnapshot({5: p, 6: x}, ())
    with pytest.raises(RuntimeError):
        select_opponent_move(snapshot, 2, ScriptedRng())


def test_enabled_pool_can_start_from_a_remembered_card():
    p, q, r, s = cards(5, 5, 6, 6)
    snapshot = MemorySnapshot({5: p}, (q, r, s))
    assert snapshot.enabled == (p, q, r, s)
    move = select_opponent_move(snapshot, 2, ScriptedRng(integers=[0, 0]), FirstFlipPool.ENABLED)
    # p is its own memory, so the second card is a fresh unseen draw
    assert move == (p, q, False)


def test_selection_leaves_the_memory_alone():
    a, b, c, d = cards(1, 2, 1, 2)
    memory = MemoryPartition([a, b, c, d])
    memory.observe(b)
    select_opponent_move(memory.snapshot(), 2, np.random.default_rng(0))
    assert memory.remembered == {2: b}
    assert memory.unseen == [a, c, d]


def test_recall_rate():
    p, x, y, z = cards(5, 5, 6, 7)
    snapshot = MemorySnapshot({5: p}, (x, y, z))
    rng = np.random.default_rng(0)
    moves = [select_opponent_move(snapshot, 3, rng) for _ in range(4000)]
    recalled = [move.recalled for move in moves if move.first is x]
    assert all(move.second is p for move in moves if move.recalled)
    assert not any(move.second.picture_id == move.first.picture_id for move in moves if not move.recalled and move.first is x)
    assert 0.7 < np.mean(recalled) < 0.8
