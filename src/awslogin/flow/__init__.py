"""The interactive login flow.

* :class:`FlowMachine` -- pure transition function over :class:`FlowState`.
* :class:`AuthPipeline` -- the PROCESSING step (STS, role chain, ECR).
* :class:`FlowRunner` -- performs the machine's effects against a
  :class:`~awslogin.ui.SelectionUI` until the flow quits.
* :func:`create_runner` -- wires all of the above from
  :class:`~awslogin.models.LoginSettings`.

Typical usage::

    from awslogin.flow import create_runner

    runner = create_runner(settings, store, TerminalUI())
    final = runner.run()
    if final.error is not None:
        raise SystemExit(final.error.exit_code)
"""

from awslogin.flow.machine import (
    FlowMachine,
    FlowState,
    FlowStep,
    Transition,
    is_valid_mfa_code,
)
from awslogin.flow.pipeline import AuthPipeline, resolve_account_id
from awslogin.flow.runner import FlowRunner, create_runner

__all__ = [
    "AuthPipeline",
    "FlowMachine",
    "FlowRunner",
    "FlowState",
    "FlowStep",
    "Transition",
    "create_runner",
    "is_valid_mfa_code",
    "resolve_account_id",
]
