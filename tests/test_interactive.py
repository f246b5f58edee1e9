import os

import pytest

os.environ.setdefault('SDL_VIDEODRIVER', 'dummy')

import pygame

from memory_duel.interactive import InteractiveMatch
from memory_duel.memory_duel_game import Phase


@pytest.fixture
def match():
    pygame.init()
    yield InteractiveMatch(width=800, height=600, seed=0)
    pygame.quit()


def test_grid_dimensions():
    assert InteractiveMatch.grid_dimensions(16) == (4, 4)
    assert InteractiveMatch.grid_dimensions(12) == (4, 3)


def test_cursor_to_card(match):
    for index in range(16):
        assert match.cursor_to_card(*match.card_rect(index).center) == index
    # Top-left padding, and below the grid where the labels are
    assert match.cursor_to_card(1, 1) is None
    assert match.cursor_to_card(400, 599) is None


def test_labels_come_from_the_controller(match):
    assert match.turn_text == 'Your Turn!'
    assert match.score_texts == ('Your Score: 0', "Lilith's Score: 0")


def test_click_flips_a_card(match):
    assert match.click(*match.card_rect(5).center)
    assert match.controller.cards[5].face_up
    assert not match.click(*match.card_rect(5).center)
    assert match.click(*match.card_rect(6).center)
    assert match.controller.phase is Phase.EVALUATING
    match.controller.scheduler.advance(2.0)
    assert match.turn_text in ('Your Turn!', "Lilith's Turn!")


def test_render(match):
    match.click(*match.card_rect(0).center)
    surface = match.render()
    assert surface.get_size() == (800, 600)
    # Face-up card is drawn white around its picture
    x, y = match.card_rect(0).topleft
    assert tuple(surface.get_at((x + 1, y + 1)))[:3] == (255, 255, 255)
