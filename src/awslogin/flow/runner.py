"""Drive the :class:`~awslogin.flow.machine.FlowMachine` against a real UI.

:class:`FlowRunner` is the event loop: it asks the machine for the next
effect, performs it (a prompt, or a background call), turns the outcome
into an event and hands it back, until the machine reaches ``QUIT``.

Background calls (fetching the MFA code from a vault, the STS/ECR
pipeline) run one at a time on a single worker thread while the main
thread keeps the spinner alive and rotates the status message. Ctrl-C is
cooperative: the in-flight call is allowed to finish, its result is
discarded, and the machine receives :class:`~awslogin.flow.machine.Cancelled`.
"""

from __future__ import annotations

import concurrent.futures
import itertools
import logging
import random
from typing import Callable, Optional, Sequence, TypeVar

from awslogin.auth.credential_store import CredentialStore
from awslogin.auth.drivers import AuthDriver, driver_spec, installed_drivers
from awslogin.client.aws_cli import AwsCli
from awslogin.client.executor import CommandExecutor
from awslogin.exceptions import AwsLoginError
from awslogin.flow.machine import (
    Acknowledged,
    Authenticate,
    Cancelled,
    DriverChosen,
    Effect,
    Event,
    Failed,
    FetchMfaCode,
    FlowMachine,
    FlowState,
    FlowStep,
    MfaEntered,
    MfaRetrieved,
    ProcessingFinished,
    ProfileChosen,
    PromptMfaCode,
    RoleChosen,
    SelectDriver,
    SelectProfile,
    SelectRole,
    ShowOutcome,
)
from awslogin.flow.pipeline import AuthPipeline
from awslogin.models import LoginSettings
from awslogin.session import SessionPublisher
from awslogin.ui import Choice, SelectionUI

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROCESSING_MESSAGES = (
    "asking STS nicely for a session...",
    "negotiating with the IAM gatekeepers...",
    "counting to six very carefully...",
    "checking the MFA device has not drifted...",
    "untangling the role chain...",
    "warming up the credential oven...",
    "waiting for the cloud to answer...",
    "reticulating security tokens...",
)

STATUS_INTERVAL = 2.0
"""Seconds between status message rotations while a call is in flight."""


class FlowRunner:
    """Execute the login wizard until it quits.

    Args:
        machine: The transition function.
        pipeline: Runs the PROCESSING exchanges.
        ui: Prompts, spinner and outcome rendering.
        executor: Passed to drivers that fetch codes from a vault.
        interval: Seconds between status message rotations.
    """

    def __init__(
        self,
        machine: FlowMachine,
        pipeline: AuthPipeline,
        ui: SelectionUI,
        executor: CommandExecutor,
        interval: float = STATUS_INTERVAL,
    ) -> None:
        self._machine = machine
        self._pipeline = pipeline
        self._ui = ui
        self._executor = executor
        self._interval = interval

    def run(self) -> FlowState:
        """Run to completion and return the final (``QUIT``) state."""
        state, effect = self._machine.start()
        while state.step is not FlowStep.QUIT:
            if effect is None:
                raise RuntimeError(f"login flow stalled in step '{state.step.value}'")
            try:
                event = self._perform(effect)
            except KeyboardInterrupt:
                logger.debug("Interrupted during %s", state.step.value)
                event = Cancelled()
            state, effect = self._machine.dispatch(state, event)
        return state

    # ------------------------------------------------------------------ #
    # Effects
    # ------------------------------------------------------------------ #

    def _perform(self, effect: Effect) -> Event:
        if isinstance(effect, SelectProfile):
            choices = [Choice(label=p, value=p) for p in effect.profiles]
            return ProfileChosen(self._ui.select("Profile Selection", choices))

        if isinstance(effect, SelectDriver):
            choices = []
            for name in effect.drivers:
                spec = driver_spec(name)
                choices.append(Choice(label=spec.label, value=name, description=spec.description))
            default = effect.drivers.index(effect.default) if effect.default in effect.drivers else 0
            return DriverChosen(
                self._ui.select("Authentication Driver Selection", choices, default=default)
            )

        if isinstance(effect, SelectRole):
            choices = [
                Choice(label=o.label, value=o.role, description=o.description)
                for o in effect.options
            ]
            return RoleChosen(self._ui.select("Role Selection", choices))

        if isinstance(effect, PromptMfaCode):
            return MfaEntered(self._ui.ask_mfa_code(effect.notice))

        if isinstance(effect, FetchMfaCode):
            driver = AuthDriver(effect.driver, self._executor, effect.vault_key)
            return self._background(
                [f"Fetching your MFA code from {driver.label}..."],
                driver.get_code,
                MfaRetrieved,
            )

        if isinstance(effect, Authenticate):
            messages = list(PROCESSING_MESSAGES)
            random.shuffle(messages)
            return self._background(
                messages,
                lambda: self._pipeline.run(effect.profile, effect.role, effect.mfa_code),
                ProcessingFinished,
            )

        if isinstance(effect, ShowOutcome):
            self._ui.show_outcome(effect.result, effect.error)
            return Acknowledged()

        raise TypeError(f"Unknown effect: {effect!r}")

    def _background(
        self,
        messages: Sequence[str],
        task: Callable[[], T],
        on_success: Callable[[T], Event],
    ) -> Event:
        """Run *task* on a worker thread while a spinner cycles *messages*."""
        rotation = itertools.cycle(messages)
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(task)
            with self._ui.status(next(rotation)) as status:
                try:
                    value = self._wait(future, status, rotation)
                except KeyboardInterrupt:
                    status.update("Cancelling once the current step finishes...")
                    concurrent.futures.wait([future])
                    logger.debug("Discarding result of cancelled background call")
                    return Cancelled()
                except AwsLoginError as exc:
                    return Failed(exc)
        return on_success(value)

    def _wait(self, future: "concurrent.futures.Future[T]", status, rotation) -> T:
        while True:
            try:
                return future.result(timeout=self._interval)
            except concurrent.futures.TimeoutError:
                status.update(next(rotation))


def create_runner(
    settings: LoginSettings,
    store: CredentialStore,
    ui: SelectionUI,
    executor: Optional[CommandExecutor] = None,
    publisher: Optional[SessionPublisher] = None,
) -> FlowRunner:
    """Wire a :class:`FlowRunner` from startup settings.

    Probes which drivers are installed, then builds the machine, the STS
    pipeline and the session publisher.
    """
    executor = executor or CommandExecutor()
    publisher = publisher or SessionPublisher(settings.session_path)

    installed = installed_drivers(executor)
    logger.debug("Installed drivers: %s", ", ".join(d.value for d in installed))

    machine = FlowMachine(
        store,
        installed=installed,
        configured_driver=settings.driver,
        preferred_profile=settings.profile,
    )
    pipeline = AuthPipeline(store, AwsCli(executor), publisher, settings)
    return FlowRunner(machine, pipeline, ui, executor)
