"""
ConformOS — Shared Primitives
"""

from conformos.primitives.common import ConformBaseModel, new_id, utc_now

__all__ = ["ConformBaseModel", "new_id", "utc_now"]
