"""Integration-test harness wiring.

Key Components:
    - IntegrationHarness: Callback endpoint, waits, proxies and cleanup
    - ServerSuite: Builds servers, clients and harness for one suite
    - reap_proxies: Kills leftover workload proxies by command-line marker
"""

from ._harness import DEPLOYMENT_SUCCESS, STATUS_UPDATE, IntegrationHarness
from ._reaper import find_proxy_processes, reap_proxies
from ._suite import ServerSuite

__all__ = [
    "DEPLOYMENT_SUCCESS",
    "STATUS_UPDATE",
    "IntegrationHarness",
    "ServerSuite",
    "find_proxy_processes",
    "reap_proxies",
]
