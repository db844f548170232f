"""Sample store layer.

The only shared mutable resource of the engine: a relational store with
transactional upserts. Everything else is derived from it on demand.
"""

from chargecurve.store.engine import create_store_engine
from chargecurve.store.samples import SampleStore

__all__ = ["SampleStore", "create_store_engine"]
