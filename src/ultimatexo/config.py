"""Game options, optionally read from ``ULTIMATEXO_*`` environment variables."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .game import GameState, Listener, Mark

ENV_PREFIX = "ULTIMATEXO_"


class GameConfig(BaseModel):
    """Options shared by every game a session starts."""

    model_config = ConfigDict(frozen=True)

    first_player: Mark = Field(default=Mark.X, description="Mark that moves first")
    legacy_undo: bool = Field(
        default=False,
        description=(
            "Undo sends the forced square to the undone move's sub-board "
            "instead of restoring the previous one"
        ),
    )
    notify_on_undo: bool = Field(
        default=True, description="Notify the listener after a successful undo"
    )

    @field_validator("first_player", mode="before")
    @classmethod
    def normalize_player(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, Mark):
            return value.strip().upper()
        return value

    @field_validator("first_player")
    @classmethod
    def ensure_player_mark(cls, value: Mark) -> Mark:
        if value is Mark.EMPTY:
            raise ValueError("The first player must be X or O")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GameConfig":
        """Build a config from ``ULTIMATEXO_<FIELD>`` variables; unset ones keep defaults."""
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in env:
                values[name] = env[key]
        return cls.model_validate(values)

    def new_game(self, listener: Optional[Listener] = None) -> GameState:
        return GameState(
            first_player=self.first_player,
            legacy_undo=self.legacy_undo,
            notify_on_undo=self.notify_on_undo,
            listener=listener,
        )
