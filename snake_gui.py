# Tkinter host for a two-snake duel: draws session snapshots and forwards keys/buttons as commands.
from __future__ import annotations

import logging
import tkinter as tk
from tkinter import messagebox
from typing import Callable

# Support both package imports and running this file directly.
try:
    from .game_clock import GameClock, TkScheduler
    from .game_logic import DuelConfig, GameMode
    from .game_session import GameSession, GameStateView, RoundPhase
except ImportError:
    from game_clock import GameClock, TkScheduler
    from game_logic import DuelConfig, GameMode
    from game_session import GameSession, GameStateView, RoundPhase


def bind_commit(widget: tk.Widget, command: Callable[[], None]) -> None:
    """Run ``command`` when a typed value is confirmed with Enter or by leaving the field."""
    for sequence in ("<Return>", "<KP_Enter>", "<FocusOut>"):
        widget.bind(sequence, lambda _e: command())


class DuelApp:
    """Tkinter presentation layer for GameSession."""
    BG = "#101418"
    BOARD_BG = "#1c2229"
    SIDEBAR_BG = "#0f1720"
    GRID_COLOR = "#293340"
    FOOD_COLOR = "#ffb347"
    TEXT_PRIMARY = "#e6eef7"
    TEXT_MUTED = "#95a4b8"
    ACCENT = "#42c4ff"
    BORDER_COLOR = "#7f8b99"

    MODE_LABELS = {
        "Player vs Computer": GameMode.HUMAN_VS_AUTONOMOUS,
        "Computer vs Computer": GameMode.AUTONOMOUS_VS_AUTONOMOUS,
    }
    KEYS = {
        "<Up>": "up",
        "<Down>": "down",
        "<Left>": "left",
        "<Right>": "right",
        "w": "up",
        "s": "down",
        "a": "left",
        "d": "right",
    }

    def __init__(self, root: tk.Tk, config: DuelConfig | None = None) -> None:
        self.root = root
        self.root.title("Snake Duel")
        self.root.configure(bg=self.BG)

        self.config = config or DuelConfig()
        self.session = GameSession(self.config, clock=GameClock(TkScheduler(root)))
        self.session.add_listener(self.draw)

        self._build_layout()
        self._bind_keys()
        self.draw(self.session.snapshot())

    def _build_layout(self) -> None:
        """Create game canvas + right sidebar panels."""
        container = tk.Frame(self.root, bg=self.BG)
        container.pack(fill="both", expand=True, padx=16, pady=16)

        self.canvas = tk.Canvas(
            container,
            width=self.config.board_width,
            height=self.config.board_height,
            bg=self.BOARD_BG,
            highlightthickness=0,
            bd=0,
        )
        self.canvas.pack(side="left", padx=(0, 16))

        self.sidebar = tk.Frame(container, bg=self.SIDEBAR_BG, width=300)
        self.sidebar.pack(side="right", fill="y")

        tk.Label(
            self.sidebar,
            text="Snake Duel",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            font=("Helvetica", 16, "bold"),
        ).pack(anchor="w", padx=16, pady=(16, 10))

        self._build_status()
        self._build_controls()
        self._build_buttons()

    def _build_status(self) -> None:
        """Score and round-state labels."""
        frame = tk.LabelFrame(
            self.sidebar,
            text="Status",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            bd=1,
            font=("Helvetica", 10, "bold"),
            labelanchor="n",
        )
        frame.pack(fill="x", padx=16, pady=(0, 14))

        self.score_vars = [tk.StringVar(), tk.StringVar()]
        self.state_var = tk.StringVar(value="State: Ready")
        for var in (*self.score_vars, self.state_var):
            tk.Label(
                frame,
                textvariable=var,
                fg=self.TEXT_PRIMARY,
                bg=self.SIDEBAR_BG,
                font=("Helvetica", 11),
                anchor="w",
            ).pack(fill="x", padx=10, pady=4)

    def _build_controls(self) -> None:
        frame = tk.LabelFrame(
            self.sidebar,
            text="Settings",
            fg=self.TEXT_PRIMARY,
            bg=self.SIDEBAR_BG,
            bd=1,
            font=("Helvetica", 10, "bold"),
            labelanchor="n",
        )
        frame.pack(fill="x", padx=16, pady=(0, 14))

        self.mode_var = tk.StringVar(value="Player vs Computer")
        row = tk.Frame(frame, bg=self.SIDEBAR_BG)
        row.pack(fill="x", padx=10, pady=4)
        tk.Label(row, text="Mode", fg=self.TEXT_PRIMARY, bg=self.SIDEBAR_BG).pack(side="left")
        tk.OptionMenu(row, self.mode_var, *self.MODE_LABELS, command=self._on_mode).pack(side="right")

        self.speed_var = tk.StringVar(value=f"{self.config.base_speed:g}")
        row = tk.Frame(frame, bg=self.SIDEBAR_BG)
        row.pack(fill="x", padx=10, pady=4)
        tk.Label(row, text="Speed (ticks/s)", fg=self.TEXT_PRIMARY, bg=self.SIDEBAR_BG).pack(side="left")
        spin = tk.Spinbox(
            row,
            from_=self.config.min_speed,
            to=self.config.max_speed,
            increment=0.5,
            textvariable=self.speed_var,
            width=8,
            justify="center",
            command=self.apply_speed,
        )
        spin.pack(side="right")
        bind_commit(spin, self.apply_speed)

    def _build_buttons(self) -> None:
        frame = tk.Frame(self.sidebar, bg=self.SIDEBAR_BG)
        frame.pack(fill="x", padx=16, pady=(0, 10))
        for text, command in (
            ("Start", self.session.start),
            ("Pause / Resume", self.session.toggle_pause),
            ("Restart", self.session.restart),
        ):
            tk.Button(
                frame,
                text=text,
                command=command,
                fg="#09141f",
                bg=self.ACCENT,
                bd=0,
                relief="flat",
                font=("Helvetica", 11, "bold"),
                pady=8,
            ).pack(fill="x", pady=4)

        tk.Label(
            self.sidebar,
            text="Move: Arrow keys / WASD, Space: pause",
            fg=self.TEXT_MUTED,
            bg=self.SIDEBAR_BG,
            font=("Helvetica", 10),
        ).pack(anchor="w", padx=16, pady=(4, 10))

    def _bind_keys(self) -> None:
        for key, direction in self.KEYS.items():
            self.root.bind(key, lambda _e, d=direction: self._steer(d))
        self.root.bind("<space>", lambda _e: self.session.toggle_pause())

    def _steer(self, direction: str) -> None:
        if self.session.mode is GameMode.HUMAN_VS_AUTONOMOUS:
            self.session.set_direction(0, direction)

    def _on_mode(self, label: str) -> None:
        self.session.set_mode(self.MODE_LABELS[label])

    def apply_speed(self) -> None:
        try:
            value = float(self.speed_var.get())
        except ValueError:
            messagebox.showerror("Invalid Setting", "Speed must be a number.")
            return
        self.session.set_speed(value)

    def _state_text(self, view: GameStateView) -> str:
        if view.phase is RoundPhase.COUNTDOWN:
            return f"State: Starting in {view.countdown}"
        if view.phase is RoundPhase.ENDED:
            if view.winner is None:
                return "State: Tie"
            return f"State: {view.snakes[view.winner].name} wins"
        return f"State: {view.phase.value.capitalize()}"

    def draw(self, view: GameStateView) -> None:
        """Render board, food, both snakes and the status labels."""
        self.canvas.delete("all")
        width, height, cell = self.config.board_width, self.config.board_height, self.config.cell_size

        for x in range(0, width + 1, cell):
            self.canvas.create_line(x, 0, x, height, fill=self.GRID_COLOR)
        for y in range(0, height + 1, cell):
            self.canvas.create_line(0, y, width, y, fill=self.GRID_COLOR)
        self.canvas.create_rectangle(1, 1, width - 1, height - 1, outline=self.BORDER_COLOR, width=2)

        fx, fy = view.food
        self.canvas.create_oval(fx + 3, fy + 3, fx + cell - 3, fy + cell - 3, fill=self.FOOD_COLOR, outline="")

        for snake, var in zip(view.snakes, self.score_vars):
            for x, y in snake.body:
                self.canvas.create_rectangle(x + 1, y + 1, x + cell - 1, y + cell - 1, fill=snake.color, outline="")
            var.set(f"{snake.name}: {snake.score}")

        self.state_var.set(self._state_text(view))
        if view.phase is RoundPhase.COUNTDOWN:
            self.canvas.create_text(
                width // 2, height // 2, text=str(view.countdown), fill=self.TEXT_PRIMARY,
                font=("Helvetica", 40, "bold"),
            )
        elif view.phase is RoundPhase.ENDED:
            self.canvas.create_text(
                width // 2, height // 2, text=self._state_text(view)[len("State: "):],
                fill=self.TEXT_PRIMARY, font=("Helvetica", 22, "bold"),
            )


def run_duel_gui() -> None:
    """Launch the duel window."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    root = tk.Tk()
    DuelApp(root)
    root.mainloop()


if __name__ == "__main__":
    run_duel_gui()
