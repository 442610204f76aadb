"""Room Lifecycle Rules — pure transition planning for the lobby → active → ended machine.

Invariants:
    - ends_at == starts_at + rounds * ROUND_DURATION whenever both are set by start
    - Configuration (rounds) may change ONLY in LOBBY
    - start is valid ONLY from LOBBY; anything else is ALREADY_APPLIED (idempotent retry)
    - end applies ONLY from ACTIVE; LOBBY/ENDED are accepted as no-ops
    - rename has no state restriction

Design Decisions:
    - Planning is pure and returns TransitionOutcome; the shell executes the planned
      write as a conditional UPDATE so a concurrent duplicate loses cleanly
      (ADR: store is the only serialization point, no in-process locks)
    - ALREADY_APPLIED over REJECTED for lost races: a double click on "start" must
      converge on one schedule, not surface an error
"""

from dataclasses import dataclass
from datetime import datetime

from app.core.domain_types import ROUND_DURATION, RoomStatus, TransitionOutcome


@dataclass(frozen=True)
class Schedule:
    starts_at: datetime
    ends_at: datetime


def compute_schedule(now: datetime, rounds: int) -> Schedule:
    return Schedule(starts_at=now, ends_at=now + rounds * ROUND_DURATION)


def total_minutes(rounds: int) -> int:
    return int(rounds * ROUND_DURATION.total_seconds() // 60)


def plan_set_rounds(status: RoomStatus) -> TransitionOutcome:
    if status == RoomStatus.LOBBY:
        return TransitionOutcome.APPLIED
    return TransitionOutcome.ALREADY_APPLIED


def plan_start(status: RoomStatus) -> TransitionOutcome:
    if status == RoomStatus.LOBBY:
        return TransitionOutcome.APPLIED
    return TransitionOutcome.ALREADY_APPLIED


def plan_end(status: RoomStatus) -> TransitionOutcome:
    if status == RoomStatus.ACTIVE:
        return TransitionOutcome.APPLIED
    return TransitionOutcome.ALREADY_APPLIED
