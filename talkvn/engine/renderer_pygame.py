"""Interactive pygame host: draws the surface state and drives the controller."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pygame
from pygame import Surface

from ..ui.textwrap import wrap_text
from .controller import PlaybackController, PlaybackStatus
from .registry import LOGICAL_SIZE
from .surface import ISurface, PortraitTemplate, VisualHandle

logger = logging.getLogger(__name__)

PANEL_MARGIN_X = 40
PANEL_MARGIN_BOTTOM = 30
PANEL_HEIGHT = 200
PORTRAIT_HEIGHT_RATIO = 0.8
# where an anchor-less portrait is drawn
DEFAULT_PORTRAIT_ORIGIN = (LOGICAL_SIZE[0] * 0.5, LOGICAL_SIZE[1] * 0.64)

FONT_FAMILIES = [
    "Noto Sans CJK KR",
    "Noto Sans KR",
    "Malgun Gothic",
    "Apple SD Gothic Neo",
    "Noto Sans CJK SC",
    "Microsoft YaHei",
]


def init_font(font_path: Optional[str], size: int) -> pygame.font.Font:
    if font_path:
        p = Path(font_path)
        if p.exists():
            return pygame.font.Font(str(p), size)
        logger.warning(f"Font not found: {p}; falling back to system fonts")
    try:
        return pygame.font.SysFont(FONT_FAMILIES, size)
    except (pygame.error, OSError):
        return pygame.font.SysFont(None, size)


def make_placeholder(label: str, size: Tuple[int, int], font: pygame.font.Font,
                     bg_color: Tuple[int, int, int, int] = (80, 80, 120, 255)) -> Surface:
    surf = pygame.Surface(size, pygame.SRCALPHA)
    surf.fill(bg_color)
    pygame.draw.rect(surf, (200, 200, 240, 255), surf.get_rect(), 4)
    txt = font.render(label, True, (255, 255, 255))
    surf.blit(txt, txt.get_rect(center=(size[0] // 2, 40)))
    return surf


def scale_to_height(surf: Surface, target_h: int) -> Surface:
    w, h = surf.get_size()
    if h <= 0 or h == target_h:
        return surf
    ratio = float(target_h) / float(h)
    return pygame.transform.smoothscale(surf, (max(1, int(w * ratio)), max(1, int(target_h))))


class PygameSurface(ISurface):
    def __init__(self, title: str = "talkvn", font_path: Optional[str] = None, font_size: int = 28,
                 asset_root: Optional[str] = None) -> None:
        pygame.init()
        self.screen = pygame.display.set_mode(LOGICAL_SIZE, pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.canvas = pygame.Surface(LOGICAL_SIZE).convert_alpha()
        self.font = init_font(font_path, font_size)
        self.name_font = init_font(font_path, max(12, int(font_size * 0.9)))
        self.root = VisualHandle(name="<root>")
        self.speaker = ""
        self.line_text = ""
        self.background: Any = None
        self._visuals: List[VisualHandle] = []
        self._asset_root = Path(asset_root) if asset_root else Path.cwd()
        self._images: Dict[str, Surface] = {}

    # --- ISurface ---
    def set_speaker(self, text: str) -> None:
        self.speaker = text

    def set_line_text(self, text: str) -> None:
        self.line_text = text

    def get_background(self) -> Any:
        return self.background

    def set_background(self, visual: Any) -> None:
        self.background = visual

    def create_visual(self, template: PortraitTemplate) -> VisualHandle:
        handle = VisualHandle(name=template.key, sprite=template.sprite)
        self._visuals.append(handle)
        return handle

    def destroy_visual(self, handle: VisualHandle) -> None:
        handle.alive = False
        handle.sprite = None
        try:
            self._visuals.remove(handle)
        except ValueError:
            pass

    # --- drawing ---
    def _image(self, ref: Any, label: str, size: Tuple[int, int]) -> Optional[Surface]:
        if ref is None:
            return None
        if isinstance(ref, Surface):
            return ref
        key = str(ref)
        img = self._images.get(key)
        if img is None:
            path = Path(key)
            if not path.is_absolute():
                path = self._asset_root / path
            try:
                img = pygame.image.load(str(path)).convert_alpha()
            except (pygame.error, FileNotFoundError) as e:
                logger.warning(f"Image missing: {path} ({e}); using placeholder")
                img = make_placeholder(label, size, self.font)
            self._images[key] = img
        return img

    def render(self) -> None:
        rx, ry = self.root.position
        offset = (int(rx), int(-ry))
        self.canvas.fill((20, 20, 28))
        bg = self._image(self.background, f"BG: {self.background}", LOGICAL_SIZE)
        if bg is not None:
            if bg.get_size() != LOGICAL_SIZE:
                bg = pygame.transform.smoothscale(bg, LOGICAL_SIZE)
                self._images[str(self.background)] = bg
            self.canvas.blit(bg, offset)
        for handle in self._visuals:
            if not handle.alive:
                continue
            img = self._image(handle.sprite, handle.name, (500, 900))
            if img is None:
                continue
            body = scale_to_height(img, int(LOGICAL_SIZE[1] * PORTRAIT_HEIGHT_RATIO * handle.scale))
            if handle.alpha < 1.0:
                body = body.copy()
                body.set_alpha(int(255 * max(0.0, handle.alpha)))
            x, y = handle.screen_position(DEFAULT_PORTRAIT_ORIGIN)
            self.canvas.blit(body, body.get_rect(center=(int(x) + offset[0], int(y) + offset[1])))
        self._draw_text_panel()
        win = self.screen.get_size()
        if win == LOGICAL_SIZE:
            self.screen.blit(self.canvas, (0, 0))
        else:
            self.screen.blit(pygame.transform.smoothscale(self.canvas, win), (0, 0))
        pygame.display.flip()

    def _draw_text_panel(self) -> None:
        rect = pygame.Rect(PANEL_MARGIN_X, LOGICAL_SIZE[1] - PANEL_HEIGHT - PANEL_MARGIN_BOTTOM,
                           LOGICAL_SIZE[0] - PANEL_MARGIN_X * 2, PANEL_HEIGHT)
        panel = pygame.Surface(rect.size, pygame.SRCALPHA)
        panel.fill((15, 20, 35, 220))
        self.canvas.blit(panel, rect.topleft)
        y = rect.top + 16
        if self.speaker:
            name = self.name_font.render(self.speaker, True, (255, 235, 180))
            self.canvas.blit(name, (rect.left + 24, y))
            y += name.get_height() + 8

        def measure(s: str) -> int:
            return self.font.size(s)[0]

        for row in wrap_text(self.line_text, measure, rect.width - 48):
            if y > rect.bottom - self.font.get_height():
                break
            self.canvas.blit(self.font.render(row, True, (255, 255, 255)), (rect.left + 24, y))
            y += self.font.get_linesize()


def run_pygame(controller: PlaybackController, surface: PygameSurface, fps: int = 60,
               exit_on_finish: bool = True) -> PlaybackStatus:
    """Frame loop: input -> advance, clock delta -> tick, then render."""
    clock = pygame.time.Clock()
    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif controller.config.advance_on_pointer and event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
                controller.advance()
            elif controller.config.advance_on_pointer and event.type == pygame.KEYDOWN and event.key in (pygame.K_RETURN, pygame.K_SPACE):
                controller.advance()
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False
        dt = clock.tick(max(10, int(fps))) / 1000.0
        controller.tick(dt)
        surface.render()
        if exit_on_finish and controller.status is PlaybackStatus.FINISHED:
            running = False
    status = controller.status
    controller.shutdown()
    pygame.quit()
    return status
