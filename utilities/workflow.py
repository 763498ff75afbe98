"""
Sequential multi-stage workflows built from waits.

Stages run strictly in order, each receiving the result of the previous one. The first failing
stage moves the workflow to FAILED and its exception propagates unchanged: no retry across stages
and no rollback, cleanup is a separate explicit operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

LOGGER = logging.getLogger(__name__)
BASIC_LOGGER = logging.getLogger("basic")


class WorkflowState:
    CREATED = "Created"
    CONVERGED = "Converged"
    FAILED = "Failed"


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[Any], Any]


class Workflow:
    def __init__(self, name, stages):
        if not stages:
            raise ValueError(f"Workflow {name} requires at least one stage")
        stage_names = [stage.name for stage in stages]
        if len(set(stage_names)) != len(stage_names):
            raise ValueError(f"Workflow {name} stage names must be unique: {stage_names}")

        self.name = name
        self.stages = list(stages)
        self.state = WorkflowState.CREATED
        self.failed_stage = None
        self.completed_stages = []

    def __repr__(self):
        return f"Workflow(name={self.name!r}, state={self.state!r})"

    def run(self, initial=None):
        """
        Run every stage once, in order.

        Args:
            initial: value passed to the first stage.

        Returns:
            The result of the last stage.

        Raises:
            RuntimeError: if the workflow already ran.
            Exception: whatever the failing stage raised.
        """
        if self.state != WorkflowState.CREATED:
            raise RuntimeError(f"Workflow {self.name} already ran, state: {self.state}")

        result = initial
        for stage in self.stages:
            self.state = stage.name
            BASIC_LOGGER.info(f"{self.name}: {stage.name}")
            try:
                result = stage.run(result)
            except Exception:
                self.failed_stage = stage.name
                self.state = WorkflowState.FAILED
                LOGGER.error(f"Workflow {self.name} failed at stage: {stage.name}")
                raise
            self.completed_stages.append(stage.name)

        self.state = WorkflowState.CONVERGED
        LOGGER.info(f"Workflow {self.name} converged after stages: {self.completed_stages}")
        return result
