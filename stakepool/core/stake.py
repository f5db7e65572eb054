"""Stake records held by the pool."""
from pydantic import BaseModel, Field, model_validator


class Stake(BaseModel):
    """A fixed-term stake. Only ``claimed`` ever changes after creation."""
    id: int
    amount: int = Field(gt=0)
    start_time: int  # ms
    end_time: int  # ms
    apy_bp: int = Field(ge=0)
    claimed: bool = False

    @model_validator(mode="after")
    def _check_window(self) -> "Stake":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not precede start_time")
        return self

    @property
    def duration_seconds(self) -> int:
        """Contracted lock duration."""
        return (self.end_time - self.start_time) // 1000

    def is_mature(self, now_ms: int) -> bool:
        return now_ms >= self.end_time

    def mark_claimed(self) -> None:
        if self.claimed:
            raise ValueError(f"Stake {self.id} already claimed")
        self.claimed = True
