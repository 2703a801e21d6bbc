from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from defi_pulse.insights import UserPosition


class UserPositionRequest(BaseModel):
    # Accepts both snake_case and the dashboard's camelCase field names
    staked: float = Field(validation_alias=AliasChoices("staked", "stakedAmount"))
    wrapped: float = Field(default=0.0, validation_alias=AliasChoices("wrapped", "wrappedAmount"))
    rewards: float = 0.0

    def to_position(self) -> UserPosition:
        return UserPosition(staked=self.staked, wrapped=self.wrapped, rewards=self.rewards)
