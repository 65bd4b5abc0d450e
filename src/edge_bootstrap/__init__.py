"""Idempotent bootstrap of an edge proxy stack and a gateway's admin API.

Packages:
  convergence  check-before-create for networks, config and secret files
  pipeline     ordered steps with soft-failure isolation, verification probe
  gateway      admin API client and the provisioning workflow
"""

from .runner import ConvergenceRunner, RunMode, RunSummary
from .settings import GatewayWorkload, RunConfiguration

__all__ = [
    'ConvergenceRunner',
    'GatewayWorkload',
    'RunConfiguration',
    'RunMode',
    'RunSummary',
]

__version__ = '0.1.0'
