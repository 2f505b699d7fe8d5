"""The login wizard as a pure state machine.

The flow is linear::

    PROFILE_SELECTION -> DRIVER_SELECTION -> ROLE_SELECTION -> MFA_INPUT
        -> PROCESSING -> DONE -> QUIT

:class:`FlowMachine` never performs I/O. Every call takes an immutable
:class:`FlowState` plus an event and returns a :class:`Transition`: the next
state and at most one *effect* describing what the outside world should do
next (show a list, read a code, run the STS exchange, ...). The
:class:`~awslogin.flow.runner.FlowRunner` performs the effect and feeds the
resulting event back in.

Entering a step may skip it without user input: a single valid profile,
a single installed (or explicitly configured) driver, and a profile with no
assumable roles all advance immediately. Such skips are ordinary
transitions chained inside one call.

A :class:`Cancelled` event moves any non-terminal state straight to
``QUIT``. Once in ``QUIT`` every event is ignored and the last outcome
(``result`` or ``error``) is preserved for display.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Sequence, Union

from awslogin.auth.credential_store import CredentialStore
from awslogin.auth.drivers import driver_spec
from awslogin.exceptions import AwsLoginError, DriverError, ProfileNotFoundError
from awslogin.models import AuthFlowResult, DriverName

logger = logging.getLogger(__name__)

MFA_CODE_LENGTH = 6
INVALID_MFA_NOTICE = "Invalid MFA code - must be 6 digits"


def is_valid_mfa_code(code: str) -> bool:
    """Return ``True`` if *code* is exactly six ASCII digits."""
    return len(code) == MFA_CODE_LENGTH and all("0" <= ch <= "9" for ch in code)


class FlowStep(enum.Enum):
    PROFILE_SELECTION = "profile_selection"
    DRIVER_SELECTION = "driver_selection"
    ROLE_SELECTION = "role_selection"
    MFA_INPUT = "mfa_input"
    PROCESSING = "processing"
    DONE = "done"
    QUIT = "quit"


@dataclass(frozen=True)
class FlowState:
    """Working memory of the wizard.

    Attributes:
        step: Current step.
        profile: Selected profile; rebound to the role owner after a
            successful role assumption.
        driver: Selected MFA code source.
        role: Selected role ARN, ``""`` for "continue as self".
        mfa_code: The accepted MFA code.
        result: Success outcome, set on entering ``DONE``.
        error: Failure outcome, set on entering ``DONE``.
        notice: Transient message shown with the MFA prompt.
    """

    step: FlowStep = FlowStep.PROFILE_SELECTION
    profile: str = ""
    driver: Optional[DriverName] = None
    role: str = ""
    mfa_code: str = ""
    result: Optional[AuthFlowResult] = None
    error: Optional[AwsLoginError] = None
    notice: str = ""

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.error is None


# --- Events ---


@dataclass(frozen=True)
class ProfileChosen:
    profile: str


@dataclass(frozen=True)
class DriverChosen:
    driver: DriverName


@dataclass(frozen=True)
class RoleChosen:
    role: str  # "" means continue as self


@dataclass(frozen=True)
class MfaEntered:
    """A code typed by the user; validated by the machine."""

    code: str


@dataclass(frozen=True)
class MfaRetrieved:
    """A code produced by a driver."""

    code: str


@dataclass(frozen=True)
class ProcessingFinished:
    result: AuthFlowResult


@dataclass(frozen=True)
class Failed:
    """A background operation failed; carries the original error."""

    error: AwsLoginError


@dataclass(frozen=True)
class Acknowledged:
    """The outcome has been shown."""


@dataclass(frozen=True)
class Cancelled:
    """The user asked to stop (Ctrl-C)."""


Event = Union[
    ProfileChosen,
    DriverChosen,
    RoleChosen,
    MfaEntered,
    MfaRetrieved,
    ProcessingFinished,
    Failed,
    Acknowledged,
    Cancelled,
]


# --- Effects ---


@dataclass(frozen=True)
class RoleOption:
    label: str
    role: str
    description: str = ""


@dataclass(frozen=True)
class SelectProfile:
    profiles: tuple[str, ...]


@dataclass(frozen=True)
class SelectDriver:
    drivers: tuple[DriverName, ...]
    default: DriverName = DriverName.MANUAL


@dataclass(frozen=True)
class SelectRole:
    options: tuple[RoleOption, ...]


@dataclass(frozen=True)
class PromptMfaCode:
    notice: str = ""


@dataclass(frozen=True)
class FetchMfaCode:
    driver: DriverName
    vault_key: str


@dataclass(frozen=True)
class Authenticate:
    profile: str
    role: str
    mfa_code: str


@dataclass(frozen=True)
class ShowOutcome:
    result: Optional[AuthFlowResult]
    error: Optional[AwsLoginError]


Effect = Union[
    SelectProfile,
    SelectDriver,
    SelectRole,
    PromptMfaCode,
    FetchMfaCode,
    Authenticate,
    ShowOutcome,
]


class Transition(NamedTuple):
    state: FlowState
    effect: Optional[Effect]


class FlowMachine:
    """Transition function of the login wizard.

    Args:
        store: Loaded credential store (read-only).
        installed: Drivers usable on this machine, in display order.
        configured_driver: Driver fixed by configuration; skips the driver
            prompt when set.
        preferred_profile: Profile auto-selected when it is valid.
    """

    def __init__(
        self,
        store: CredentialStore,
        installed: Sequence[DriverName] = (DriverName.MANUAL,),
        configured_driver: Optional[DriverName] = None,
        preferred_profile: Optional[str] = None,
    ) -> None:
        self._store = store
        self._installed = tuple(installed)
        self._configured_driver = configured_driver
        self._preferred_profile = preferred_profile

    def start(self) -> Transition:
        """Enter the initial step."""
        return self._enter(FlowState())

    def dispatch(self, state: FlowState, event: Event) -> Transition:
        """Apply *event* to *state*.

        Events that do not apply to the current step leave the state
        unchanged and produce no effect.
        """
        step = state.step

        if step is FlowStep.QUIT:
            return Transition(state, None)

        if isinstance(event, Cancelled):
            logger.debug("Cancelled during %s", step.value)
            return Transition(replace(state, step=FlowStep.QUIT, notice=""), None)

        if step is FlowStep.PROFILE_SELECTION and isinstance(event, ProfileChosen):
            return self._enter(
                replace(state, step=FlowStep.DRIVER_SELECTION, profile=event.profile)
            )

        if step is FlowStep.DRIVER_SELECTION and isinstance(event, DriverChosen):
            return self._enter(
                replace(state, step=FlowStep.ROLE_SELECTION, driver=event.driver)
            )

        if step is FlowStep.ROLE_SELECTION and isinstance(event, RoleChosen):
            return self._enter(replace(state, step=FlowStep.MFA_INPUT, role=event.role))

        if step is FlowStep.MFA_INPUT and isinstance(event, MfaEntered):
            if not is_valid_mfa_code(event.code):
                invalid = replace(state, notice=INVALID_MFA_NOTICE)
                return Transition(invalid, PromptMfaCode(notice=INVALID_MFA_NOTICE))
            return self._enter(
                replace(state, step=FlowStep.PROCESSING, mfa_code=event.code, notice="")
            )

        if step is FlowStep.MFA_INPUT and isinstance(event, MfaRetrieved):
            return self._enter(
                replace(state, step=FlowStep.PROCESSING, mfa_code=event.code, notice="")
            )

        if step in (FlowStep.MFA_INPUT, FlowStep.PROCESSING) and isinstance(event, Failed):
            return self._fail(state, event.error)

        if step is FlowStep.PROCESSING and isinstance(event, ProcessingFinished):
            return self._enter(
                replace(
                    state,
                    step=FlowStep.DONE,
                    profile=event.result.profile,
                    result=event.result,
                    error=None,
                )
            )

        if step is FlowStep.DONE and isinstance(event, Acknowledged):
            return Transition(replace(state, step=FlowStep.QUIT), None)

        logger.debug("Ignoring %s in %s", type(event).__name__, step.value)
        return Transition(state, None)

    # ------------------------------------------------------------------ #
    # Entry actions
    # ------------------------------------------------------------------ #

    def _enter(self, state: FlowState) -> Transition:
        step = state.step

        if step is FlowStep.PROFILE_SELECTION:
            return self._enter_profile_selection(state)
        if step is FlowStep.DRIVER_SELECTION:
            return self._enter_driver_selection(state)
        if step is FlowStep.ROLE_SELECTION:
            return self._enter_role_selection(state)
        if step is FlowStep.MFA_INPUT:
            return self._enter_mfa_input(state)
        if step is FlowStep.PROCESSING:
            return Transition(
                state, Authenticate(state.profile, state.role, state.mfa_code)
            )
        if step is FlowStep.DONE:
            return Transition(state, ShowOutcome(state.result, state.error))
        return Transition(state, None)

    def _enter_profile_selection(self, state: FlowState) -> Transition:
        profiles = self._store.valid_profiles()
        if not profiles:
            return self._fail(
                state,
                ProfileNotFoundError(
                    "no valid profiles found; a profile needs aws_access_key_id, "
                    "aws_secret_access_key and mfa_serial"
                ),
            )

        chosen = ""
        if self._preferred_profile and self._preferred_profile in profiles:
            chosen = self._preferred_profile
        elif len(profiles) == 1:
            chosen = profiles[0]
        if chosen:
            return self._enter(
                replace(state, step=FlowStep.DRIVER_SELECTION, profile=chosen)
            )
        return Transition(state, SelectProfile(tuple(profiles)))

    def _enter_driver_selection(self, state: FlowState) -> Transition:
        configured = self._configured_driver
        if configured is not None:
            if configured not in self._installed:
                label = driver_spec(configured).label
                return self._fail(
                    state,
                    DriverError(f"{label} CLI is not installed or not available in PATH"),
                )
            return self._enter(
                replace(state, step=FlowStep.ROLE_SELECTION, driver=configured)
            )

        if len(self._installed) == 1:
            return self._enter(
                replace(state, step=FlowStep.ROLE_SELECTION, driver=self._installed[0])
            )
        return Transition(state, SelectDriver(self._installed))

    def _enter_role_selection(self, state: FlowState) -> Transition:
        roles = self._store.assumable_roles(state.profile)
        if not roles:
            return self._enter(replace(state, step=FlowStep.MFA_INPUT, role=""))

        options = [RoleOption(label=state.profile, role="", description="Continue as self")]
        for role in roles:
            owner = self._store.profile_for_role(role)
            options.append(RoleOption(label=owner or role, role=role, description=role))
        return Transition(state, SelectRole(tuple(options)))

    def _enter_mfa_input(self, state: FlowState) -> Transition:
        driver = state.driver or DriverName.MANUAL
        if driver_spec(driver).yields_code:
            cred, _ = self._store.credential(state.profile)
            vault_key = cred.vault_key if cred is not None else ""
            return Transition(state, FetchMfaCode(driver, vault_key))
        return Transition(state, PromptMfaCode(notice=state.notice))

    def _fail(self, state: FlowState, error: AwsLoginError) -> Transition:
        logger.debug("Flow failed in %s: %s", state.step.value, error)
        return self._enter(
            replace(state, step=FlowStep.DONE, result=None, error=error, notice="")
        )
