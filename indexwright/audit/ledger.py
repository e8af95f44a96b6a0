"""Append-only audit ledger of index operations, linked by a hash chain."""

from __future__ import annotations

import fcntl
import hmac
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from indexwright import __version__
from indexwright.utils.hashing import compute_sha256

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64
LOCK_SUFFIX = ".lock"


class AuditEntry(BaseModel):
    """Single audit ledger entry.

    Entries are linked in a hash chain: each one stores the hash of its
    predecessor, so editing or removing a line breaks verification.
    """

    timestamp: str = Field(..., description="ISO 8601 timestamp in UTC")
    operation: str = Field(
        ..., description="Operation name (index_rebuild, index_update, index_delete)"
    )
    scope: str = Field(..., description="Index scope the operation acted on")
    args: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation arguments and results",
    )
    version: str = Field(default=__version__, description="indexwright version")
    previous_hash: str = Field(
        default=GENESIS_HASH,
        description="SHA-256 hash of previous entry (chain link). Genesis entry has 64 zeros.",
    )
    sequence: int = Field(..., ge=1, description="Monotonic sequence number starting at 1.")
    entry_hash: str | None = Field(
        default=None,
        description="SHA-256 hash of entry content including previous_hash (excluding this field)",
    )

    def compute_hash(self) -> str:
        """Compute deterministic hash of entry content.

        Returns:
            SHA-256 hash of entry (excluding entry_hash)
        """
        data = self.model_dump(mode="json", exclude={"entry_hash"})
        content = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return compute_sha256(content.encode("utf-8"))

    def model_post_init(self, __context: Any) -> None:
        """Compute hash after initialization if not set."""
        if self.entry_hash is None:
            self.entry_hash = self.compute_hash()


class AuditLedger:
    """Append-only audit ledger stored as JSONL.

    Each index operation is written with its timestamp, scope and results.
    Appends are fsynced so an entry survives a crash right after the build.
    Several processes may share one ledger: every append holds an exclusive
    ``flock`` on a sidecar lock file and links to the tip found on disk.
    """

    def __init__(self, ledger_path: Path) -> None:
        """Initialize audit ledger.

        Args:
            ledger_path: Path to JSONL ledger file
        """
        self.ledger_path = ledger_path
        self.lock_path = ledger_path.with_name(f"{ledger_path.name}{LOCK_SUFFIX}")
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)

    def _read_entries(self) -> list[AuditEntry]:
        """Load ledger entries from disk."""
        if not self.ledger_path.exists():
            return []

        entries: list[AuditEntry] = []
        with open(self.ledger_path, encoding="utf-8", errors="replace") as fh:
            for line_num, raw_line in enumerate(fh, 1):
                line = raw_line.strip()
                if not line:
                    continue

                try:
                    entries.append(AuditEntry.model_validate_json(line))
                except ValueError as exc:
                    raise ValueError(
                        f"Invalid entry at line {line_num} in {self.ledger_path}: {exc}"
                    ) from exc

        return entries

    def _read_tip(self) -> tuple[str, int]:
        """Return hash and sequence of the last readable entry.

        Unreadable lines are skipped with a warning; :meth:`verify` reports them.
        """
        last_hash, last_sequence = GENESIS_HASH, 0
        if not self.ledger_path.exists():
            return last_hash, last_sequence

        with open(self.ledger_path, encoding="utf-8", errors="replace") as fh:
            for line_num, raw_line in enumerate(fh, 1):
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    entry = AuditEntry.model_validate_json(line)
                except ValueError:
                    logger.warning(
                        "Skipping unreadable entry at line %d in %s", line_num, self.ledger_path
                    )
                    continue
                last_hash = entry.entry_hash or GENESIS_HASH
                last_sequence = entry.sequence

        return last_hash, last_sequence

    def log(
        self,
        operation: str,
        scope: str,
        args: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """Log an operation to the audit ledger.

        Args:
            operation: Operation name
            scope: Index scope
            args: Operation arguments and results

        Returns:
            The created audit entry
        """
        self.lock_path.touch(exist_ok=True)

        with open(self.lock_path, "r") as lock_f:
            # Blocks while another writer appends
            fcntl.flock(lock_f.fileno(), fcntl.LOCK_EX)
            try:
                previous_hash, last_sequence = self._read_tip()

                entry = AuditEntry(
                    timestamp=datetime.now(UTC).isoformat(),
                    operation=operation,
                    scope=scope,
                    args=args or {},
                    previous_hash=previous_hash,
                    sequence=last_sequence + 1,
                )

                separate = self._has_torn_tail()
                with open(self.ledger_path, "ab") as fh:
                    # A torn last line must not swallow the new entry
                    if separate:
                        fh.write(b"\n")
                    fh.write((entry.model_dump_json() + "\n").encode("utf-8"))
                    fh.flush()
                    os.fsync(fh.fileno())
            finally:
                fcntl.flock(lock_f.fileno(), fcntl.LOCK_UN)

        return entry

    def _has_torn_tail(self) -> bool:
        try:
            with open(self.ledger_path, "rb") as fh:
                fh.seek(0, os.SEEK_END)
                if fh.tell() == 0:
                    return False
                fh.seek(-1, os.SEEK_END)
                return fh.read(1) != b"\n"
        except FileNotFoundError:
            return False

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger.

        Returns:
            List of audit entries in chronological order
        """
        return self._read_entries()

    def verify(self) -> tuple[bool, str | None]:
        """Verify integrity of the hash chain.

        Returns:
            Tuple of (is_valid, error_message). error_message is None if valid.
        """
        try:
            entries = self._read_entries()
        except ValueError as exc:
            return False, str(exc)

        previous_hash = GENESIS_HASH

        for idx, entry in enumerate(entries, 1):
            if entry.entry_hash is None:
                return False, f"Entry {idx} missing entry_hash; ledger corrupted or tampered."

            expected_hash = entry.compute_hash()
            if not hmac.compare_digest(entry.entry_hash, expected_hash):
                return (
                    False,
                    f"Entry {idx} has invalid hash (expected '{expected_hash}', "
                    f"got '{entry.entry_hash}').",
                )

            if entry.previous_hash != previous_hash:
                return (
                    False,
                    f"Entry {idx} breaks hash chain (expected previous_hash='{previous_hash}', "
                    f"found '{entry.previous_hash}').",
                )

            if entry.sequence != idx:
                return (
                    False,
                    f"Entry {idx} sequence mismatch (expected {idx}, got {entry.sequence}).",
                )

            previous_hash = entry.entry_hash

        return True, None

    def get_by_scope(self, scope: str) -> list[AuditEntry]:
        """Get all entries recorded for ``scope`` (case-insensitive)."""
        key = scope.casefold()
        return [entry for entry in self.read_all() if entry.scope.casefold() == key]
