"""Sequential execution of asynchronous operations.

run_sequential() awaits a list of zero-argument async operations strictly
one after another: operation n+1 is not even called before the awaitable
of operation n has settled. Ordering, progress output and failure
attribution therefore stay deterministic even though every step is
non-blocking I/O.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from .error_policies import ErrorPolicy, FailFastPolicy


@dataclass
class Operation:
    """A deferred async step with a label for reporting.

    Calling the operation starts it; ``subject`` is the address or path it
    works on and is handed to the error policy on failure.
    """

    label: str
    func: Callable[[], Awaitable[Any]]
    subject: Any = None

    def __call__(self) -> Awaitable[Any]:
        return self.func()


@dataclass
class Outcome:
    """Result of one executed operation."""

    index: int
    label: str
    subject: Any = None
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SequenceReport:
    """All outcomes of a sequence, in execution order."""

    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[Outcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[Outcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def results(self) -> List[Any]:
        return [outcome.result for outcome in self.outcomes]


async def run_sequential(
    operations: Iterable[Callable[[], Any]],
    policy: Optional[ErrorPolicy] = None
) -> SequenceReport:
    """Run operations one at a time, in order.

    Args:
        operations: Zero-argument callables returning awaitables (plain
            return values are accepted too)
        policy: What to do with a failure. FailFastPolicy (default)
            re-raises it and no later operation is started;
            ContinueOnErrorsPolicy records it and moves on.

    Returns:
        SequenceReport with one Outcome per operation that was started

    Raises:
        Whatever the policy re-raises
    """
    policy = policy or FailFastPolicy()
    report = SequenceReport()

    for index, operation in enumerate(operations):
        label = _label_of(operation)
        subject = getattr(operation, 'subject', None)
        outcome = Outcome(index=index, label=label, subject=subject)
        report.outcomes.append(outcome)
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            outcome.result = result
        except Exception as exc:
            outcome.error = exc
            outcome.result = await policy.handle(exc, label, subject)

    return report


def _label_of(operation: Any) -> str:
    label = getattr(operation, 'label', None)
    if label:
        return label
    return getattr(operation, '__name__', None) or repr(operation)
