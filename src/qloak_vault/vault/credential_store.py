# Vault - Credential Store
#
# Flat-file persistence: one `username:ciphertext` line per record,
# line order = record order. No header, index or version tag.

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .exceptions import RecordFormatError

logger = logging.getLogger(__name__)

DELIMITER = ":"

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class CredentialRecord:
    """A username and its secret (plaintext in memory, base64 ciphertext on disk)."""
    username: str
    secret: str

    def __repr__(self) -> str:
        return f"CredentialRecord(username={self.username!r}, secret=<hidden>)"


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a vault line into (username, secret), or return None if malformed.

    Trailing empty fields are discarded before counting, so "alice:" and
    "a::" are malformed while "a:b" is accepted.
    """
    parts = line.rstrip("\r\n").split(DELIMITER)
    while parts and parts[-1] == "":
        parts.pop()

    if len(parts) != 2:
        return None
    return parts[0], parts[1]


class CredentialStore:
    """
    Reads and writes vault files.

    Writes are atomic: the new content goes to a sibling temp file that
    replaces the target only once fully written.
    """

    @staticmethod
    def _validate(record: CredentialRecord) -> None:
        if DELIMITER in record.username:
            raise RecordFormatError(f"username must not contain '{DELIMITER}'")
        if "\n" in record.username or "\r" in record.username:
            raise RecordFormatError("username must not contain line breaks")
        try:
            record.username.encode("utf-8")
        except UnicodeEncodeError:
            raise RecordFormatError("username is not valid text") from None
        if "\n" in record.secret or "\r" in record.secret:
            raise RecordFormatError("secret must not contain line breaks")

    def write(self, records: Iterable[CredentialRecord], path: PathLike) -> None:
        """
        Write records to `path`, overwriting any existing file.

        Raises:
            RecordFormatError: A record cannot round-trip through the line format
            ValueError: `path` does not name a file or is not a valid path
            OSError: The file cannot be written
        """
        records = list(records)
        for record in records:
            self._validate(record)

        content = "".join(
            f"{record.username}{DELIMITER}{record.secret}\n" for record in records
        )

        target = Path(path)
        if not target.name:
            raise ValueError(f"{os.fspath(path)!r} does not name a file")

        # mkstemp creates the file with mode 0600 and a name no other file has
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            os.replace(tmp_name, target)
        except Exception:
            # Clean up temp file on failure
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug("Wrote %d record(s) to %s", len(records), target)

    def read(self, path: PathLike) -> List[CredentialRecord]:
        """
        Read records from `path` in file order.

        Lines that do not split into exactly two fields are skipped.

        Raises:
            OSError: The file cannot be opened (e.g. FileNotFoundError)
        """
        records: List[CredentialRecord] = []
        with open(path, "r", encoding="utf-8", newline="") as f:
            for line_number, line in enumerate(f, start=1):
                parsed = parse_line(line)
                if parsed is None:
                    logger.debug("Skipping malformed vault line %d", line_number)
                    continue
                username, secret = parsed
                records.append(CredentialRecord(username=username, secret=secret))

        return records
