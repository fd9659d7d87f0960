"""
rift/discovery - SSO 계정/역할 및 EKS 클러스터 탐색

Example:
    from rift.discovery import discover

    inventory = discover(config)
    print(len(inventory.roles), len(inventory.clusters))
"""

from .clusters import list_all_clusters, list_clusters_for_region
from .discover import discover
from .identity import list_accounts, list_roles
from .types import AccountInfo, ClusterAccess, Inventory, RoleAccess

__all__: list[str] = [
    "discover",
    "list_accounts",
    "list_roles",
    "list_all_clusters",
    "list_clusters_for_region",
    # Types
    "AccountInfo",
    "RoleAccess",
    "ClusterAccess",
    "Inventory",
]
