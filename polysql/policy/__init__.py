"""polysql policy layer: operation access and row-limit checks."""
from polysql.policy.guard import OperationGuard, PolicyConfig, TablePolicy

__all__ = ["OperationGuard", "PolicyConfig", "TablePolicy"]
