"""Session and serial line configuration."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .backoff import BackoffPolicy
from .constants import (
    DEFAULT_BAUDRATE,
    DEFAULT_BYTESIZE,
    DEFAULT_PARITY,
    DEFAULT_SESSION_NAME,
    DEFAULT_STOPBITS,
)


class SessionConfig(BaseModel):
    """Tunables of a Session."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(DEFAULT_SESSION_NAME, description="Name of the event-loop thread")
    read_size: int | None = Field(None, gt=0, description="Max bytes per read, None for the resource default")
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy, description="Reconnect delay policy")


class SerialSettings(BaseModel):
    """Serial line settings, 8N1 without flow control by default.

    Values may come straight from a locator query string, so numbers and
    booleans are accepted in their text form.
    """

    model_config = ConfigDict(frozen=True)

    baudrate: int = Field(DEFAULT_BAUDRATE, gt=0)
    bytesize: int = Field(DEFAULT_BYTESIZE, ge=5, le=8)
    parity: str = Field(DEFAULT_PARITY, pattern="^[NEOMS]$")
    stopbits: float = DEFAULT_STOPBITS
    xonxoff: bool = False
    rtscts: bool = False

    @field_validator("parity", mode="before")
    @classmethod
    def _upper_parity(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("stopbits")
    @classmethod
    def _check_stopbits(cls, value: float) -> float:
        if value not in (1, 1.5, 2):
            raise ValueError("stopbits must be 1, 1.5 or 2")
        return value

    def as_kwargs(self) -> dict[str, Any]:
        """Keyword arguments understood by ``serial.Serial``."""
        data = self.model_dump()
        if data["stopbits"] != 1.5:
            data["stopbits"] = int(data["stopbits"])
        return data
