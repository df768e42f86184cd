"""
Form Session

Runtime state machine for rendering and filling a multi-step form.

Phases:
    editing -> submitting -> submitted (terminal)
    submitting -> editing when the submit collaborator fails

The step cursor moves independently of the phase. Every transition that
calls out to a collaborator (step change, submit) leaves the session
untouched if the collaborator raises, and re-raises the error to the caller.

Concurrent navigation: while a collaborator call is in flight, further
advance/retreat/go_to_step calls are ignored (they return BUSY/False) rather
than queued or raced against the in-flight call.
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from formengine.core.exceptions import FormBusyError, FormReadOnlyError
from formengine.models.contracts.forms import FormSchema, FormStep
from formengine.models.enums import FormPhase, NavigationResult, StepDirection
from formengine.services.forms.schema import OptionSets, merge_initial_data
from formengine.services.forms.validation import (
    ValidationResult,
    is_empty,
    validate_form_data,
)

logger = logging.getLogger(__name__)

StepChangeHandler = Callable[[StepDirection, int, dict[str, Any]], Awaitable[None]]
ValuesHandler = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class FormState:
    """Point-in-time copy of a session's state."""
    values: dict[str, Any]
    errors: dict[str, str]
    current_step_index: int
    submitting: bool
    submitted: bool
    completed_steps: list[bool] = field(default_factory=list)
    completion_percentage: int = 0


class FormSession:
    """
    Drives one user's pass through a form.

    Args:
        schema: Render-ready schema (see build_form_schema)
        initial_data: Prior draft/record values overlaid on schema defaults
        on_step_change: Awaited before every step change; raising aborts it
        on_submit: Awaited once when advancing past the last step
        on_save: Awaited on explicit save
        on_success: Awaited after a successful submit
        preview_mode: No validation gating, completion always reported as 0
        read_only: No mutation, free navigation, no validation
        option_sets: Pre-resolved option sets keyed by slug
    """

    def __init__(
        self,
        schema: FormSchema,
        *,
        initial_data: Mapping[str, Any] | None = None,
        on_step_change: StepChangeHandler | None = None,
        on_submit: ValuesHandler | None = None,
        on_save: ValuesHandler | None = None,
        on_success: ValuesHandler | None = None,
        preview_mode: bool = False,
        read_only: bool = False,
        option_sets: OptionSets | None = None,
    ):
        self.schema = schema
        self.on_step_change = on_step_change
        self.on_submit = on_submit
        self.on_save = on_save
        self.on_success = on_success
        self.preview_mode = preview_mode
        self.read_only = read_only
        self.option_sets = option_sets

        self.values: dict[str, Any] = merge_initial_data(schema, initial_data)
        self.errors: dict[str, str] = {}
        self.current_step_index = 0
        self.visited_step_index = 0
        self.phase = FormPhase.EDITING
        self.last_error: BaseException | None = None

        self._in_flight = False

    # ==================== DERIVED STATE ====================

    @property
    def step_count(self) -> int:
        return len(self.schema.steps)

    @property
    def current_step(self) -> FormStep:
        return self.schema.steps[self.current_step_index]

    @property
    def is_first_step(self) -> bool:
        return self.current_step_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == self.step_count - 1

    @property
    def submitting(self) -> bool:
        return self.phase == FormPhase.SUBMITTING

    @property
    def submitted(self) -> bool:
        return self.phase == FormPhase.SUBMITTED

    @property
    def busy(self) -> bool:
        """True while a step-change or submit collaborator call is awaited."""
        return self._in_flight

    def is_step_complete(self, index: int) -> bool:
        """
        A step is complete only once it has been passed and all of its
        required fields hold a value. Preview never reports completion.
        """
        if self.preview_mode or index >= self.current_step_index:
            return False
        step = self.schema.steps[index]
        return all(
            not is_empty(self.values.get(f.name))
            for f in step.fields
            if f.is_required
        )

    def step_completion(self) -> list[bool]:
        return [self.is_step_complete(i) for i in range(self.step_count)]

    @property
    def completion_percentage(self) -> int:
        if self.preview_mode:
            return 0
        complete = sum(1 for i in range(self.current_step_index) if self.is_step_complete(i))
        # Half-up rounding
        return math.floor(100 * complete / self.step_count + 0.5)

    def snapshot(self) -> FormState:
        return FormState(
            values=copy.deepcopy(self.values),
            errors=dict(self.errors),
            current_step_index=self.current_step_index,
            submitting=self.submitting,
            submitted=self.submitted,
            completed_steps=self.step_completion(),
            completion_percentage=self.completion_percentage,
        )

    # ==================== VALIDATION ====================

    def validate_current_step(self) -> ValidationResult:
        """Validate only the fields of the current step."""
        return validate_form_data(
            self.schema,
            self.values,
            self.schema.step_field_names(self.current_step_index),
            self.option_sets,
        )

    def _apply_step_errors(self, result: ValidationResult) -> None:
        for name in self.schema.step_field_names(self.current_step_index):
            self.errors.pop(name, None)
        self.errors.update(result.errors)

    # ==================== FIELD MUTATION ====================

    def _ensure_mutable(self) -> None:
        if self.read_only:
            raise FormReadOnlyError()
        if self.submitted:
            raise FormReadOnlyError("Form has already been submitted")
        if self.submitting:
            raise FormBusyError()

    def set_value(self, name: str, value: Any) -> None:
        """
        Update one field. Clears that field's error without re-validating.

        Raises:
            FormReadOnlyError: Read-only session, or already submitted
            FormBusyError: Submission in flight
        """
        self._ensure_mutable()
        self.values[name] = value
        self.errors.pop(name, None)

    async def save(self) -> bool:
        """
        Hand the current values to the save collaborator.

        Does not validate and does not touch the cursor or phase. Returns
        False when no save collaborator is configured, or while another
        collaborator call is in flight.
        """
        if self.read_only:
            raise FormReadOnlyError()
        if self.on_save is None or self._in_flight:
            return False
        try:
            await self.on_save(copy.deepcopy(self.values))
        except Exception as e:
            logger.warning(f"Form save failed: {e}")
            self.last_error = e
            raise
        return True

    # ==================== NAVIGATION ====================

    async def _notify_step_change(self, direction: StepDirection, from_index: int) -> None:
        if self.on_step_change is None:
            return
        await self.on_step_change(direction, from_index, copy.deepcopy(self.values))

    async def _change_step(self, direction: StepDirection, target: int) -> None:
        """Run the step-change collaborator, then move. Raising leaves state as-is."""
        from_index = self.current_step_index
        if not self.read_only:
            self._in_flight = True
            try:
                await self._notify_step_change(direction, from_index)
            except Exception as e:
                logger.warning(
                    f"Step change {direction.value} from step {from_index} aborted: {e}"
                )
                self.last_error = e
                raise
            finally:
                self._in_flight = False
        self.current_step_index = target
        self.visited_step_index = max(self.visited_step_index, target)

    async def advance(self) -> NavigationResult:
        """
        Next/Submit pressed.

        Validates the current step (unless preview or read-only), then moves
        forward, or submits when already on the last step.
        """
        if self._in_flight:
            return NavigationResult.BUSY
        if self.submitted:
            return NavigationResult.REJECTED

        if not self.preview_mode and not self.read_only:
            result = self.validate_current_step()
            self._apply_step_errors(result)
            if not result.success:
                logger.debug(
                    f"Step {self.current_step_index} failed validation: {sorted(result.errors)}"
                )
                return NavigationResult.INVALID

        if not self.is_last_step:
            await self._change_step(StepDirection.NEXT, self.current_step_index + 1)
            return NavigationResult.MOVED

        if self.read_only:
            return NavigationResult.REJECTED

        await self._submit()
        return NavigationResult.SUBMITTED

    async def _submit(self) -> None:
        self.phase = FormPhase.SUBMITTING
        self._in_flight = True
        try:
            await self._notify_step_change(StepDirection.NEXT, self.current_step_index)
            if self.on_submit is not None:
                await self.on_submit(copy.deepcopy(self.values))
        except Exception as e:
            self.phase = FormPhase.EDITING
            self.last_error = e
            logger.error(f"Form submission failed: {e}", exc_info=True)
            raise
        finally:
            self._in_flight = False

        self.phase = FormPhase.SUBMITTED
        self.last_error = None
        logger.info(f"Form submitted ({self.step_count} steps)")

        if self.on_success is not None:
            try:
                await self.on_success(copy.deepcopy(self.values))
            except Exception as e:
                logger.warning(f"Success callback failed after submit: {e}")

    async def retreat(self) -> NavigationResult:
        """Back pressed. Not allowed on the first step."""
        if self._in_flight:
            return NavigationResult.BUSY
        if self.submitted or self.is_first_step:
            return NavigationResult.REJECTED
        await self._change_step(StepDirection.PREV, self.current_step_index - 1)
        return NavigationResult.MOVED

    async def go_to_step(self, index: int) -> bool:
        """
        Sidebar/stepper click.

        Preview and read-only sessions may jump anywhere. Otherwise only the
        current step or an earlier one is reachable; forward jumps are
        silently ignored. A submitted form no longer navigates.
        """
        if self._in_flight or self.submitted:
            return False
        if not 0 <= index < self.step_count:
            return False
        if index == self.current_step_index:
            return True
        if not (self.preview_mode or self.read_only) and index > self.current_step_index:
            return False

        direction = StepDirection.NEXT if index > self.current_step_index else StepDirection.PREV
        await self._change_step(direction, index)
        return True
