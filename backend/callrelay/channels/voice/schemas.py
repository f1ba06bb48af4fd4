"""Esquemas para las notificaciones del proveedor de voz."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class NotificationEvent(BaseModel):
    """Notificación de webhook ya decodificada.

    Sólo se interpretan `state` y `playstate`; el resto de llaves se ignora.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    state: str | None = None
    play_state: str | None = Field(
        default=None, validation_alias=AliasChoices("playstate", "playState", "play_state")
    )
    voice_id: str | None = None
    to: str | None = None

    @field_validator("state", "play_state", "voice_id", "to", mode="before")
    @classmethod
    def _only_strings(cls, value: Any) -> Any:
        # Valores no textuales equivalen a una llave ausente.
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return None

    @property
    def is_empty(self) -> bool:
        return self.state is None and self.play_state is None
