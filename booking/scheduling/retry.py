"""
Bounded retry for racing writes.

A booking write can lose a race against a concurrent request: a unique
or check constraint fires (IntegrityError) or the optimistic version
check on an appointment row fails (StaleDataError). Instead of retrying
ad hoc, writes go through this small state machine:

    ATTEMPT --ok--> DONE
    ATTEMPT --race--> RECHECK --still free--> ATTEMPT
                      RECHECK --taken--> DONE (typed error)
    ATTEMPT --race, attempts exhausted--> GIVE_UP (typed error)
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from booking.scheduling.errors import SchedulingError, SchedulingErrorKind, scheduling_error

logger = logging.getLogger(__name__)


class RetryStep(str, Enum):
    ATTEMPT = "attempt"
    RECHECK = "recheck"
    GIVE_UP = "give_up"
    DONE = "done"


@dataclass
class RetryOutcome:
    result: Any = None
    error: Optional[SchedulingError] = None
    attempts: int = 0
    steps: List[RetryStep] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BoundedRetry:
    max_attempts: int = 3
    retry_on: Tuple[Type[Exception], ...] = (IntegrityError, StaleDataError)
    give_up_kind: SchedulingErrorKind = SchedulingErrorKind.SLOT_CONFLICT

    def run(
            self,
            db: Session,
            attempt: Callable[[], Any],
            recheck: Optional[Callable[[], Optional[SchedulingError]]] = None
    ) -> RetryOutcome:
        """
        Run ``attempt`` and commit it.

        ``attempt`` may return a SchedulingError to stop without writing;
        anything else is treated as the successful result.
        """
        outcome = RetryOutcome()
        step = RetryStep.ATTEMPT

        while True:
            outcome.steps.append(step)

            if step == RetryStep.ATTEMPT:
                outcome.attempts += 1
                try:
                    result = attempt()
                    if isinstance(result, SchedulingError):
                        db.rollback()
                        outcome.error = result
                        step = RetryStep.DONE
                        continue
                    db.commit()
                    outcome.result = result
                    step = RetryStep.DONE
                except self.retry_on as exc:
                    db.rollback()
                    logger.warning(
                        f"Write race on attempt {outcome.attempts}/{self.max_attempts}: "
                        f"{type(exc).__name__}"
                    )
                    step = RetryStep.RECHECK if outcome.attempts < self.max_attempts else RetryStep.GIVE_UP

            elif step == RetryStep.RECHECK:
                error = recheck() if recheck else None
                if error is not None:
                    outcome.error = error
                    step = RetryStep.DONE
                else:
                    step = RetryStep.ATTEMPT

            elif step == RetryStep.GIVE_UP:
                logger.error(f"Giving up after {outcome.attempts} attempts")
                outcome.error = scheduling_error(self.give_up_kind, attempts=outcome.attempts)
                step = RetryStep.DONE

            else:
                return outcome
