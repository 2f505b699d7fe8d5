"""Clients for the external programs awslogin drives.

* :class:`CommandExecutor` -- runs one program, returns stdout or raises
  :class:`~awslogin.exceptions.CommandError`.
* :class:`AwsCli` -- STS session-token and assume-role exchanges, plus
  Docker login to ECR, built on the executor.
"""

from awslogin.client.aws_cli import AwsCli, ecr_registry_host
from awslogin.client.executor import CommandExecutor

__all__ = ["AwsCli", "CommandExecutor", "ecr_registry_host"]
