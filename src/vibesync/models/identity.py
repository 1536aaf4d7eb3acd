"""Identity of locally held documents: pending (client-made) or confirmed (server-made)."""

import uuid
from typing import Annotated, Literal

from pydantic import BaseModel, Field

PENDING_PREFIX = "local-"


class PendingId(BaseModel):
    """Temporary identifier for an optimistic entry awaiting remote confirmation."""

    model_config = {"frozen": True}

    kind: Literal["pending"] = "pending"
    local: str = Field(default_factory=lambda: f"{PENDING_PREFIX}{uuid.uuid4().hex[:12]}")

    @property
    def value(self) -> str:
        return self.local


class ConfirmedId(BaseModel):
    """Identifier assigned by the remote document store."""

    model_config = {"frozen": True}

    kind: Literal["confirmed"] = "confirmed"
    value: str = Field(..., min_length=1)


DocumentRef = Annotated[PendingId | ConfirmedId, Field(discriminator="kind")]
