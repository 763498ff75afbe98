class MissingEnvironmentVariableError(Exception):
    pass


class InvalidPollPolicyError(ValueError):
    pass


class ConditionWaitError(Exception):
    """
    Base class for a wait that ended without the resource reaching its condition.

    The last observed state is always attached, for diagnostics.
    """

    reason = "failed waiting for condition"

    def __init__(self, observed, condition=None):
        super().__init__()
        self.observed = observed
        self.condition = condition

    def __str__(self):
        condition_str = f" '{self.condition}'" if self.condition else ""
        return (
            f"{self.observed.ref}: {self.reason}{condition_str}, "
            f"last observed state: {self.observed.describe()}"
        )


class ConditionTimeoutError(ConditionWaitError):
    reason = "timed out waiting for condition"

    def __init__(self, observed, condition=None, timeout=None):
        super().__init__(observed=observed, condition=condition)
        self.timeout = timeout

    def __str__(self):
        message = super().__str__()
        if self.timeout is not None:
            message = f"{message} (timeout: {self.timeout}s)"
        return message


class ConditionEvaluationError(ConditionWaitError):
    reason = "condition evaluation failed"

    def __init__(self, observed, error, condition=None):
        super().__init__(observed=observed, condition=condition)
        self.error = error

    def __str__(self):
        return f"{super().__str__()}: {self.error}"


class ConditionWaitCancelledError(ConditionWaitError):
    reason = "wait cancelled before condition was met"


class ConditionUnreachableError(Exception):
    """Raised by a condition check when the resource can no longer reach the condition."""


class RunStatusMismatchError(ConditionUnreachableError):
    def __init__(self, run_name, expected_status, actual_status, reason):
        self.run_name = run_name
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.reason = reason

    def __str__(self):
        return (
            f"Run {self.run_name} finished as {self.actual_status} (reason: {self.reason}), "
            f"expected: {self.expected_status}"
        )


class ResourceLeftoverError(Exception):
    def __init__(self, kind, names):
        self.kind = kind
        self.names = names

    def __str__(self):
        return f"{self.kind} resources still exist after deletion: {self.names}"


class UnexpectedResourcesCreatedError(ConditionUnreachableError):
    def __init__(self, expected_count, names):
        self.expected_count = expected_count
        self.names = names

    def __str__(self):
        return f"{len(self.names)} resources found, expected no more than {self.expected_count}: {self.names}"


class LabelPropagationError(Exception):
    def __init__(self, resource_name, missing_labels):
        self.resource_name = resource_name
        self.missing_labels = missing_labels

    def __str__(self):
        return f"{self.resource_name} is missing propagated labels: {self.missing_labels}"
