# src/netsim/app/viewer.py
#!/usr/bin/env python3
"""
Network Simulator Viewer: progressive trials + animated final network

- Keyboard:
    [1]/[2]/[3]  -> switch map
    [SPACE]      -> run/pause
    [N]          -> single step (one trial, aggregation, or final pass)
    [R]          -> reset
    [+]/[-]      -> steps/sec
    [D]          -> toggle diagonal moves
    [T]          -> toggle trial phase
    [H]          -> toggle heat overlay
    [Q]/[ESC]    -> quit

Options come from netsim.app.options (ENV + --key=value).
The viewer only reads maps; it never edits a grid.
"""

import logging
import sys
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

import pygame

from netsim.app.options import MAP_FILES, LaunchOptions
from netsim.core.errors import NetworkError
from netsim.core.maps import MapSpec, load_map
from netsim.core.trials import TrialOrchestrator
from netsim.core.types import Cell, Network, SynthesisConfig

logger = logging.getLogger(__name__)

# ---------- Config ----------
PANEL_W = 420            # right band: metrics + buttons
GRID_MARGIN = 16
CELL_SIZE_DEFAULT = 16
FONT_NAME = None  # default pygame font
GROWTH_CHUNK = 6         # cells revealed per frame while the final network grows
TRIAL_OPACITY = 0.12

# Colors
BLACK       = (  0,  0,  0)
WALL        = ( 17, 24, 39)
CELL_A      = (255,255,255)
CELL_B      = (245,248,252)
GRID_LINE   = (230,237,243)
START_TEAL  = ( 45,212,191)
POI_CORAL   = (255,127, 80)
TRIAL_INDIGO= ( 99,102,241)
FINAL_RED   = (239, 68, 68)
HEAT_ORANGE = (255,140,  0)
HOVER_CYAN  = ( 14,165,233)

BACKDROP    = ( 28, 31, 38)
CARD_BG     = ( 24, 28, 36)
BUTTON_OFF  = ( 40, 44, 54)
BUTTON_ON   = ( 58, 86,160)
TEXT_LIGHT  = (230,235,240)
ACCENT_GOLD = (255,210,0)


# ---------- Panel button ----------
class UIButton:
    """A clickable label; `lit` reports the viewer state it mirrors, if any."""

    def __init__(self, label: str, rect: pygame.Rect, callback, lit: Optional[Callable[[], bool]] = None):
        self.label = label
        self.rect = rect
        self.callback = callback
        self.lit = lit

    def draw(self, screen: pygame.Surface, font: pygame.font.Font):
        on = self.lit is not None and self.lit()
        pygame.draw.rect(screen, BUTTON_ON if on else BUTTON_OFF, self.rect, border_radius=8)
        text = font.render(self.label, True, TEXT_LIGHT)
        screen.blit(text, text.get_rect(center=self.rect.center))

    def click(self, pos: Tuple[int, int]) -> bool:
        if self.rect.collidepoint(pos):
            self.callback()
            return True
        return False


# ---------- Viewer ----------
class Viewer:
    def __init__(self, spec: MapSpec, opts: LaunchOptions):
        pygame.init()

        self.opts = opts
        self.spec = spec
        self.config: SynthesisConfig = opts.apply(spec.config)
        self.cell_size = self._auto_cell_size()
        self.font_small = pygame.font.Font(FONT_NAME, 14)
        self.font = pygame.font.Font(FONT_NAME, 18)
        self.font_big = pygame.font.Font(FONT_NAME, 22)

        grid = spec.grid
        grid_px_w = GRID_MARGIN*2 + grid.cols * self.cell_size
        grid_px_h = GRID_MARGIN*2 + grid.rows * self.cell_size
        win_w = grid_px_w + PANEL_W
        win_h = max(grid_px_h, 640)

        self.screen = pygame.display.set_mode((win_w, win_h), pygame.RESIZABLE)
        pygame.display.set_caption(f"Network Simulator — {spec.name}")

        self._buttons: List[UIButton] = []
        self._layout(win_w, win_h)

        self.running = False
        self.clock = pygame.time.Clock()
        self.steps_per_sec = 8
        self.state = "Idle"
        self.show_heat = False
        self.hover_cell: Optional[Cell] = None

        self.orch = TrialOrchestrator(config=self.config)
        self.orch.init(spec.grid, spec.terminals)
        self._reset_overlays()

    # ---------- layout ----------
    def _layout(self, win_w: int, win_h: int):
        """Fit the largest whole cell size left of the panel; the panel takes the rest."""
        rows, cols = self.spec.grid.rows, self.spec.grid.cols
        self.cell_size = max(4, min((win_w - PANEL_W - 2 * GRID_MARGIN) // cols,
                                    (win_h - 2 * GRID_MARGIN) // rows))
        self._grid_origin = (GRID_MARGIN, GRID_MARGIN)
        panel_x = 2 * GRID_MARGIN + cols * self.cell_size
        self._right_band = pygame.Rect(panel_x, 0, max(PANEL_W, win_w - panel_x), win_h)
        self._build_buttons()

    def _auto_cell_size(self) -> int:
        target_h = 720 - GRID_MARGIN*2
        return max(6, min(CELL_SIZE_DEFAULT, target_h // self.spec.grid.rows))

    # ---------- run loop ----------
    def run(self):
        while True:
            self._handle_events()
            if self.running:
                self._tick_orchestrator()
            if self._growing:
                self._grow()
            self._draw()
            self.clock.tick(60)

    def _tick_orchestrator(self):
        t0 = pygame.time.get_ticks() / 1000.0
        step_interval = 1.0 / max(1, self.steps_per_sec)
        if t0 - self._last_step_t >= step_interval:
            self._last_step_t = t0
            self._do_step()

    def _do_step(self):
        if self.orch.status == "done":
            self.running = False
            return
        res = self.orch.step()
        if res.status == "running_trials":
            self.trial_networks.append(res.network)
            self.state = "Trials"
        elif res.status == "aggregating":
            self.state = "Aggregating"
        elif res.status == "done":
            self.final_network = res.network
            self._start_growth(res.network)
            self.state = "Done"
            self.running = False
            excluded = self.orch.excluded_terminals()
            for u in excluded:
                logger.warning(f"POI {u.index} at {u.terminal.cell} is unreachable")

    # ---------- growth animation ----------
    def _start_growth(self, net: Network):
        self._grow_target = [list(p) for p in net.paths]
        self.shown_paths = []
        self._growing = bool(self._grow_target)

    def _grow(self):
        i = len(self.shown_paths) - 1
        if i < 0 or len(self.shown_paths[i]) >= len(self._grow_target[i]):
            if len(self.shown_paths) == len(self._grow_target):
                self._growing = False
                return
            self.shown_paths.append([])
            i += 1
        seg = self._grow_target[i]
        n = len(self.shown_paths[i])
        self.shown_paths[i] = seg[:n + GROWTH_CHUNK]

    # ---------- events ----------
    def _handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                pygame.quit(); sys.exit(0)
            elif e.type == pygame.KEYDOWN:
                if e.key in (pygame.K_ESCAPE, pygame.K_q):
                    pygame.quit(); sys.exit(0)
                elif e.key == pygame.K_SPACE:
                    self._toggle_run()
                elif e.key == pygame.K_r:
                    self._reset()
                elif e.key == pygame.K_n:
                    self._do_step()
                elif e.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._bump_speed(+1)
                elif e.key in (pygame.K_MINUS, pygame.K_UNDERSCORE):
                    self._bump_speed(-1)
                elif e.key == pygame.K_1:
                    self._switch_map("01_open_field")
                elif e.key == pygame.K_2:
                    self._switch_map("02_river_gap")
                elif e.key == pygame.K_3:
                    self._switch_map("03_walled_garden")
                elif e.key == pygame.K_d:
                    self._toggle_config("allow_diagonals")
                elif e.key == pygame.K_t:
                    self._toggle_config("show_trials")
                elif e.key == pygame.K_h:
                    self._toggle_heat()
            elif e.type == pygame.VIDEORESIZE:
                self.screen = pygame.display.set_mode((max(640, e.w), max(480, e.h)), pygame.RESIZABLE)
                self._layout(*self.screen.get_size())
            elif e.type == pygame.MOUSEMOTION:
                self.hover_cell = self._cell_at(e.pos)
            elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                any(b.click(e.pos) for b in self._buttons)

    def _cell_at(self, pos: Tuple[int, int]) -> Optional[Cell]:
        ox, oy = self._grid_origin
        col = (pos[0] - ox) // self.cell_size
        row = (pos[1] - oy) // self.cell_size
        cell = (row, col)
        return cell if self.spec.grid.in_bounds(cell) else None

    # ---------- state changes ----------
    def _rebuild(self):
        self.orch = TrialOrchestrator(config=self.config)
        self.orch.init(self.spec.grid, self.spec.terminals)
        self._reset()

    def _switch_map(self, key: str):
        if key not in MAP_FILES: return
        try:
            spec = load_map(MAP_FILES[key])
            config = self.opts.apply(spec.config)
        except (NetworkError, OSError) as ex:
            logger.error(f"Failed to load map {key}: {ex}")
            return
        self.spec = spec
        self.config = config
        pygame.display.set_caption(f"Network Simulator — {key}")
        self._layout(*self.screen.get_size())
        self._rebuild()

    def _toggle_config(self, name: str):
        self.config = replace(self.config, **{name: not getattr(self.config, name)})
        self._rebuild()

    def _toggle_heat(self):
        self.show_heat = not self.show_heat

    def _reset_overlays(self):
        self.trial_networks: List[Network] = []
        self.final_network: Optional[Network] = None
        self.shown_paths: List[List[Cell]] = []
        self._grow_target: List[List[Cell]] = []
        self._growing = False
        self._last_step_t = 0.0

    def _reset(self):
        self.running = False
        self.state = "Idle"
        self.orch.reset()
        self._reset_overlays()

    def _toggle_run(self):
        if self.state == "Done":
            return
        self.running = not self.running
        self.state = "Running" if self.running else "Paused"

    def _bump_speed(self, dv: int):
        self.steps_per_sec = int(max(1, min(60, self.steps_per_sec + dv)))

    # ---------- drawing ----------
    def _draw(self):
        self.screen.fill(BACKDROP)
        self._draw_grid()
        self._draw_metrics_and_buttons()
        pygame.display.flip()

    def _center(self, cell: Cell) -> Tuple[int, int]:
        cs = self.cell_size
        ox, oy = self._grid_origin
        return ox + cell[1]*cs + cs//2, oy + cell[0]*cs + cs//2

    def _draw_grid(self):
        cs = self.cell_size
        ox, oy = self._grid_origin
        grid = self.spec.grid

        for row in range(grid.rows):
            for col in range(grid.cols):
                rect = pygame.Rect(ox + col*cs, oy + row*cs, cs, cs)
                if not grid.is_passable((row, col)):
                    pygame.draw.rect(self.screen, WALL, rect)
                else:
                    pygame.draw.rect(self.screen, CELL_A if (row + col) % 2 == 0 else CELL_B, rect)
                pygame.draw.rect(self.screen, GRID_LINE, rect, 1)

        heat = self.orch.heat_map
        if self.show_heat and heat is not None:
            s = pygame.Surface((cs, cs), pygame.SRCALPHA)
            for row in range(grid.rows):
                for col in range(grid.cols):
                    v = heat[row][col]
                    if v > 0:
                        s.fill((*HEAT_ORANGE, int(40 + 180 * v)))
                        self.screen.blit(s, (ox + col*cs, oy + row*cs))

        self._draw_terminals()

        # trials, low opacity
        if self.trial_networks:
            layer = pygame.Surface(self.screen.get_size(), pygame.SRCALPHA)
            color = (*TRIAL_INDIGO, int(255 * TRIAL_OPACITY))
            width = max(1, int(cs * 0.5))
            for net in self.trial_networks:
                for path in net.paths:
                    if len(path) >= 2:
                        pygame.draw.lines(layer, color, False, [self._center(c) for c in path], width)
            self.screen.blit(layer, (0, 0))

        # final network
        width = max(2, int(cs * 0.7))
        for path in self.shown_paths:
            if len(path) >= 2:
                pygame.draw.lines(self.screen, FINAL_RED, False, [self._center(c) for c in path], width)
        if self.final_network is not None and not self._growing:
            for t in self.spec.terminals:
                pygame.draw.circle(self.screen, WALL, self._center(t.cell), max(2, int(cs * 0.18)))

        if self.hover_cell is not None and self.final_network is not None:
            snap = self.final_network.nearest_cell(self.hover_cell)
            if snap is not None:
                x, y = self._center(snap)
                rect = pygame.Rect(x - cs//2 + 1, y - cs//2 + 1, cs - 2, cs - 2)
                pygame.draw.rect(self.screen, HOVER_CYAN, rect, 2)

    def _draw_terminals(self):
        cs = self.cell_size
        for t in self.spec.terminals[1:]:
            cx, cy = self._center(t.cell)
            radius = max(4, int(t.size * 3 * cs / 12))
            glow = pygame.Surface((radius*4, radius*4), pygame.SRCALPHA)
            pygame.draw.circle(glow, (*POI_CORAL, 36), (radius*2, radius*2), int(radius * 1.6))
            self.screen.blit(glow, (cx - radius*2, cy - radius*2))
            pygame.draw.circle(self.screen, POI_CORAL, (cx, cy), radius)
            txt = self.font_small.render(str(t.size), True, BLACK)
            self.screen.blit(txt, txt.get_rect(center=(cx, cy)))

        origin = self.spec.terminals[0]
        cx, cy = self._center(origin.cell)
        pygame.draw.circle(self.screen, START_TEAL, (cx, cy), max(4, int(cs * 0.4)))
        txt = self.font_small.render("S", True, BLACK)
        self.screen.blit(txt, txt.get_rect(center=(cx, cy)))

    # ---------- buttons + metrics ----------
    def _build_buttons(self):
        rb = self._right_band
        x, y = rb.x + 16, rb.y + 290
        w = max(160, rb.width - 32)
        h, gap = 34, 8
        half = (w - gap) // 2
        cfg = lambda name: (lambda: getattr(self.config, name))
        rows = [
            [("Run / Pause", self._toggle_run, lambda: self.running)],
            [("Step Once", self._do_step, None), ("Reset", self._reset, None)],
            [("Speed -", lambda: self._bump_speed(-1), None), ("Speed +", lambda: self._bump_speed(+1), None)],
            [("Diagonals", lambda: self._toggle_config("allow_diagonals"), cfg("allow_diagonals")),
             ("Trials", lambda: self._toggle_config("show_trials"), cfg("show_trials"))],
            [("Heat overlay", self._toggle_heat, lambda: self.show_heat)],
        ]
        self._buttons = []
        for row in rows:
            bw = w if len(row) == 1 else half
            for k, (label, cb, lit) in enumerate(row):
                self._buttons.append(UIButton(label, pygame.Rect(x + k * (half + gap), y, bw, h), cb, lit))
            y += h + gap

    def _draw_metrics_and_buttons(self):
        rb = self._right_band
        pygame.draw.rect(self.screen, CARD_BG, pygame.Rect(rb.x + 10, rb.y + 10, rb.width - 20, 270), border_radius=14)

        x0 = rb.x + 24
        y0 = rb.y + 18

        def line(text, big=False, color=TEXT_LIGHT):
            nonlocal y0
            f = self.font_big if big else self.font
            surf = f.render(text, True, color)
            self.screen.blit(surf, (x0, y0))
            y0 += surf.get_height() + 6

        line(f"Network: {self.spec.name}", big=True, color=ACCENT_GOLD)
        line(f"State: {self.state} ({self.orch.status})")
        line(f"Trials: {self.orch.trial_index}/{self.orch.trial_total}")
        net = self.final_network
        line(f"Paths: {len(net.paths) if net else 0}   Cells: {len(net.cells) if net else 0}")
        if net is not None and net.excluded:
            line(f"Unreachable POIs: {', '.join(str(i) for i in net.excluded)}", color=FINAL_RED)
        else:
            line("Unreachable POIs: none")
        line(f"Speed: {self.steps_per_sec} steps/s")
        line(f"Noise {self.config.noise_scale:.2f}   Influence {self.config.trial_influence:.2f}")
        if self.hover_cell is not None:
            heat = self.orch.heat_map
            v = heat[self.hover_cell[0]][self.hover_cell[1]] if heat is not None else 0.0
            snap = net.nearest_cell(self.hover_cell) if net is not None else None
            line(f"Cell {self.hover_cell}  heat {v:.2f}  snap {snap}")

        for b in self._buttons:
            b.draw(self.screen, self.font)


# ---------- main ----------
def main(opts: Optional[LaunchOptions] = None):
    opts = opts or LaunchOptions()
    try:
        spec = load_map(opts.map_path)
    except (NetworkError, OSError) as ex:
        logger.error(f"Failed to load map {opts.map_path}: {ex}")
        sys.exit(1)
    Viewer(spec, opts).run()


if __name__ == "__main__":
    main()
