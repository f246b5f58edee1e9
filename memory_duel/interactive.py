from dataclasses import dataclass, field

import numpy as np
import pygame

from memory_duel.cards import Card, N_CARDS
from memory_duel.memory_duel_game import GameConfig, GameController, GameListener
from memory_duel.scheduler import VirtualClock


# One color per picture id (index 0 unused)
PICTURE_COLORS = (
    (0, 0, 0),
    (239, 68, 68),
    (59, 130, 246),
    (34, 197, 94),
    (234, 179, 8),
    (249, 115, 22),
    (168, 85, 247),
    (236, 72, 153),
    (6, 182, 212),
)


@dataclass
class InteractiveMatch(GameListener):
    """Play a duel against the memory opponent in a pygame window.

    Clicking a card asks the controller to flip it; the controller's timers
    run on a VirtualClock advanced by the real frame time.
    """
    width: int = 800
    height: int = 600
    config: GameConfig = GameConfig()
    seed: int | None = None
    fps: int = 60
    rows: int = field(init=False)
    cols: int = field(init=False)
    turn_text: str = field(init=False, default='')
    score_texts: tuple[str, str] = field(init=False, default=('', ''))
    outcome: bool | None = field(init=False, default=None) # True once won, False once lost

    def __post_init__(self):
        self.rows, self.cols = self.grid_dimensions(N_CARDS)
        self.controller = GameController(
            listener=self,
            scheduler=VirtualClock(),
            rng=np.random.default_rng(self.seed),
            config=self.config,
        )

    @staticmethod
    def grid_dimensions(num_cards):
        factors = [i for i in range(1, num_cards + 1) if num_cards % i == 0]
        cols = min(factors, key=lambda x: abs(x - np.sqrt(num_cards)))
        rows = int(num_cards // cols)
        return rows, cols

    @property
    def padding(self):
        return min(self.width, self.height) // 25

    @property
    def card_width(self):
        return (self.width - (self.cols + 1) * self.padding) // self.cols

    @property
    def card_height(self):
        # Reserve two lines at the bottom for the labels
        return (self.height - (self.rows + 3) * self.padding) // self.rows

    def card_rect(self, index: int) -> pygame.Rect:
        row, col = divmod(index, self.cols)
        x = col * (self.card_width + self.padding) + self.padding
        y = row * (self.card_height + self.padding) + self.padding
        return pygame.Rect(x, y, self.card_width, self.card_height)

    def cursor_to_card(self, x, y) -> int | None:
        col = (x - self.padding) // (self.card_width + self.padding)
        row = (y - self.padding) // (self.card_height + self.padding)
        if not (0 <= col < self.cols and 0 <= row < self.rows):
            return None
        card = col + row * self.cols
        if not self.card_rect(card).collidepoint(x, y):
            # Clicked on the padding between cards
            return None
        return card

    # GameListener

    def on_turn_text(self, text: str):
        self.turn_text = text

    def on_score_text(self, player_text: str, opponent_text: str):
        self.score_texts = (player_text, opponent_text)

    def on_game_won(self):
        self.outcome = True

    def on_game_lost(self):
        self.outcome = False

    # Draw using pygame (needs pygame.init() to be called before)
    def render(self) -> pygame.Surface:
        FONT_SIZE = 24
        BG_COLOR = (30, 30, 30)
        BACK_COLOR = (200, 200, 200)
        FACE_COLOR = (255, 255, 255)
        TEXT_COLOR = (0, 0, 0)
        LABEL_COLOR = (255, 255, 255)

        canvas = pygame.Surface((self.width, self.height))
        font = pygame.font.Font(None, FONT_SIZE)
        canvas.fill(BG_COLOR)

        card: Card
        for card in self.controller.cards:
            if card.disabled:
                continue
            rect = self.card_rect(card.index)
            if not card.face_up:
                pygame.draw.rect(canvas, BACK_COLOR, rect)
                continue
            pygame.draw.rect(canvas, FACE_COLOR, rect)
            radius = min(rect.width, rect.height) // 3
            pygame.draw.circle(canvas, PICTURE_COLORS[card.picture_id], rect.center, radius)
            text_surface = font.render(str(card.picture_id), True, TEXT_COLOR)
            canvas.blit(text_surface, text_surface.get_rect(center=rect.center))

        player_text, opponent_text = self.score_texts
        labels = (
            (self.turn_text, self.width // 2),
            (player_text, self.width // 6),
            (opponent_text, 5 * self.width // 6),
        )
        for text, x in labels:
            surface = font.render(text, True, LABEL_COLOR)
            canvas.blit(surface, surface.get_rect(center=(x, self.height - self.padding)))
        return canvas

    def click(self, x, y) -> bool:
        index = self.cursor_to_card(x, y)
        if index is None:
            return False
        return self.controller.request_flip(self.controller.cards[index])

    def play(self) -> bool | None:
        """Run the window until the match ends or it is closed.

        Returns True if the player won, False if they lost, None if the
        window was closed before the end.
        """
        pygame.init()
        screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption('Memory duel')
        clock = pygame.time.Clock()
        running = True
        while running and self.outcome is None:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.click(*event.pos)
            self.controller.scheduler.advance(clock.tick(self.fps) / 1000)
            screen.blit(self.render(), (0, 0))
            pygame.display.flip()
        pygame.quit()
        return self.outcome
