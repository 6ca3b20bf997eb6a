from bronzeledger.engine.committer import BatchCommitter
from bronzeledger.engine.current_state import CurrentStateWriter
from bronzeledger.engine.differ import diff_snapshot
from bronzeledger.engine.history import HistoryWriter
from bronzeledger.engine.kinds import ChildCollection, ResourceKind, get_kind, register_kind, registered_kinds
from bronzeledger.engine.sweeper import StaleSweeper
from bronzeledger.engine.types import BatchResult, Diff, IngestResult, RetireResult, Snapshot

__all__ = [
    "BatchCommitter",
    "BatchResult",
    "ChildCollection",
    "CurrentStateWriter",
    "Diff",
    "HistoryWriter",
    "IngestResult",
    "ResourceKind",
    "RetireResult",
    "Snapshot",
    "StaleSweeper",
    "diff_snapshot",
    "get_kind",
    "register_kind",
    "registered_kinds",
]
