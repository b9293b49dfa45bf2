"""Backend implementations."""

from todoi.backends.logseq import LogSeqBackend
from todoi.backends.obsidian import ObsidianBackend
from todoi.backends.zk import ZkBackend

__all__ = ["LogSeqBackend", "ObsidianBackend", "ZkBackend"]
