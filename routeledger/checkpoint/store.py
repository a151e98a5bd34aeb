"""
Checkpoint storage management.

Checkpoints are stored as separate JSON files in a directory.
Naming: cp_{seq:010d}_{entry_hash_prefix}.json (lexicographic = numeric order)
"""

import os
from pathlib import Path
from typing import List, Optional

from .model import LedgerCheckpoint


class CheckpointStore:
    """
    Manage checkpoint files on disk.
    """

    def __init__(self, directory: str = "checkpoints"):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, checkpoint: LedgerCheckpoint) -> str:
        """
        Save checkpoint to disk.

        Returns:
            Path to saved checkpoint file
        """
        filename = f"cp_{checkpoint.seq:010d}_{checkpoint.entry_hash[:8]}.json"
        filepath = self.directory / filename
        with open(filepath, "w") as f:
            f.write(checkpoint.to_json())
        return str(filepath)

    def load(self, filepath: str) -> LedgerCheckpoint:
        with open(filepath, "r") as f:
            return LedgerCheckpoint.from_json(f.read())

    def list_checkpoints(self) -> List[str]:
        """
        List all checkpoint files (sorted by seq).
        """
        def extract_seq(path: str) -> int:
            return int(os.path.basename(path).split("_")[1])

        return sorted((str(p) for p in self.directory.glob("cp_*.json")), key=extract_seq)

    def find_latest(self) -> Optional[str]:
        checkpoints = self.list_checkpoints()
        if not checkpoints:
            return None
        return checkpoints[-1]

    def find_at_or_before(self, seq: int) -> Optional[str]:
        """
        Find the checkpoint with the largest seq <= seq.
        """
        best = None
        for cp_path in self.list_checkpoints():
            if int(os.path.basename(cp_path).split("_")[1]) <= seq:
                best = cp_path
            else:
                break
        return best

    def rotate(self, keep_count: int = 10) -> None:
        """Delete all but the latest keep_count checkpoints."""
        checkpoints = self.list_checkpoints()
        if len(checkpoints) > keep_count:
            for cp_path in checkpoints[: len(checkpoints) - keep_count]:
                os.remove(cp_path)
