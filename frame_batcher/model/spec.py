"""Configuration domain models and semantic validation."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .runtime import FailurePolicy


DEFAULT_FRAME_BUDGET_MS = 1000 / 60


class BypassSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = "never"
    params: dict = Field(default_factory=dict)


class SchedulerSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    frame_budget_ms: float = Field(default=DEFAULT_FRAME_BUDGET_MS, gt=0)
    failure_policy: FailurePolicy = FailurePolicy.PROPAGATE
    bypass: BypassSpec = Field(default_factory=BypassSpec)
    event_id_mode: str = "deterministic"


class OwnerSpec(BaseModel):
    """Simulated owner entity and the real cost of flushing its update."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    kind: str = "component"
    cost_ms: float = Field(ge=0)
    jitter_ms: float = Field(default=0.0, ge=0)
    fail: bool = False


class SubmissionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    at_ms: float = Field(ge=0)
    owner: str
    count: int = Field(default=1, ge=1)


class SimSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    duration_ms: float = Field(gt=0)
    refresh_interval_ms: float = Field(default=DEFAULT_FRAME_BUDGET_MS, gt=0)
    seed: int = 42


class WorkloadSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    scheduler: SchedulerSpec = Field(default_factory=SchedulerSpec)
    owners: list[OwnerSpec] = Field(default_factory=list)
    submissions: list[SubmissionSpec] = Field(default_factory=list)
    sim: Optional[SimSpec] = None

    @model_validator(mode="after")
    def validate_semantics(self) -> "WorkloadSpec":
        owner_ids = [owner.id for owner in self.owners]
        if len(owner_ids) != len(set(owner_ids)):
            raise ValueError("duplicate owners.id")
        known = set(owner_ids)
        for idx, submission in enumerate(self.submissions):
            if submission.owner not in known:
                raise ValueError(f"submissions[{idx}] references unknown owner '{submission.owner}'")
        if self.submissions and self.sim is None:
            raise ValueError("submissions require a sim section")
        if self.sim is not None:
            late = [s for s in self.submissions if s.at_ms > self.sim.duration_ms]
            if late:
                raise ValueError(
                    f"submission at {late[0].at_ms}ms is past sim.duration_ms {self.sim.duration_ms}"
                )
        return self
