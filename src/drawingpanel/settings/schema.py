"""Pydantic model for panel settings."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from .values import (
    DEFAULT_BACKGROUND_ARGB,
    DEFAULT_FRAME_RATE,
    DEFAULT_HEIGHT,
    DEFAULT_TITLE,
    DEFAULT_WIDTH,
    LIFETIME_POLL_S,
    MAX_SIZE,
    SCHEDULER_SLEEP_FRACTION,
    SCHEDULER_SPIN_THRESHOLD_MS,
)


class PanelSettings(BaseModel):
    """Defaults applied to new panels and to the process registry.

    Parameters
    ----------
    title: Window title of new panels.
    width, height: Size used when a panel is created without one.
    frame_rate: Initial repaint rate in frames per second.
    background_argb: Window background shown behind transparent pixels.
    anti_alias: Initial anti-alias flag of the graphics context.
    auto_exit: Exit the process once all panels are closed and the main
        thread has finished.
    lifetime_poll_s: Poll interval of the lifetime monitor.
    sleep_fraction: Portion of the remaining wait the scheduler sleeps in
        one step.
    spin_threshold_ms: Remaining wait below which the scheduler only yields.
    debug: Emit drawingpanel debug logging to stderr.
    """

    title: str = Field(default=DEFAULT_TITLE)
    width: int = Field(default=DEFAULT_WIDTH)
    height: int = Field(default=DEFAULT_HEIGHT)
    frame_rate: int = Field(default=DEFAULT_FRAME_RATE)
    background_argb: int = Field(default=DEFAULT_BACKGROUND_ARGB)
    anti_alias: bool = Field(default=True)
    auto_exit: bool = Field(default=True)
    lifetime_poll_s: float = Field(default=LIFETIME_POLL_S)
    sleep_fraction: float = Field(default=SCHEDULER_SLEEP_FRACTION)
    spin_threshold_ms: float = Field(default=SCHEDULER_SPIN_THRESHOLD_MS)
    debug: bool = Field(default=False)

    @field_validator("width", "height")
    @classmethod
    def _chk_size(cls, v: int) -> int:
        if not 1 <= v <= MAX_SIZE:
            raise ValueError(f"size must be between 1 and {MAX_SIZE}")
        return v

    @field_validator("frame_rate")
    @classmethod
    def _chk_rate(cls, v: int) -> int:
        if v < 1:
            raise ValueError("frame_rate must be >= 1")
        return v

    @field_validator("background_argb")
    @classmethod
    def _chk_bg(cls, v: int) -> int:
        return v & 0xFFFFFFFF

    @field_validator("lifetime_poll_s")
    @classmethod
    def _chk_poll(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("lifetime_poll_s must be > 0 (seconds)")
        return v

    @field_validator("spin_threshold_ms")
    @classmethod
    def _chk_spin(cls, v: float) -> float:
        if v < 0:
            raise ValueError("spin_threshold_ms must be >= 0")
        return v

    @model_validator(mode="after")
    def _chk_fraction(self) -> "PanelSettings":
        if not 0.0 < self.sleep_fraction <= 1.0:
            raise ValueError("sleep_fraction must be in (0, 1]")
        return self

    @property
    def spin_threshold_ns(self) -> int:
        return int(self.spin_threshold_ms * 1_000_000)
