"""
Account store module.

Keeps an in-memory snapshot of ``username -> password`` records, loaded once
at startup and written back in full by ``flush()``. One account per line in
the backing file::

    username=alice;password=secret

Passwords are stored and compared as plain strings.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from framechat.common.constants import ACCOUNTS_FILE, RECORD_SEPARATOR, FIELD_SEPARATOR
from framechat.common.protocol_definitions import AccountRecord
from framechat.server.utils.logger import logger


class AccountStoreError(Exception):
    """Raised when the backing file cannot be written."""


class LookupResult(Enum):
    ABSENT = 'absent'
    WRONG_PASSWORD = 'exists_wrong_password'
    CORRECT_PASSWORD = 'exists_correct_password'


def parse_record(line: str) -> Optional[AccountRecord]:
    """Parse one ``key=value;key=value`` line, or return None if malformed."""
    fields = {}
    for item in line.strip().split(RECORD_SEPARATOR):
        if not item:
            continue
        key, sep, value = item.partition(FIELD_SEPARATOR)
        if not sep:
            return None
        fields[key.strip()] = value
    username = fields.get('username')
    password = fields.get('password')
    if not username or password is None:
        return None
    return AccountRecord(username, password)


def format_record(record: AccountRecord) -> str:
    """Format a record as one line of the backing file."""
    return (f"username{FIELD_SEPARATOR}{record.username}{RECORD_SEPARATOR}"
            f"password{FIELD_SEPARATOR}{record.password}")


def is_storable(value: str) -> bool:
    """Return True if the value can be written without corrupting a line."""
    return bool(value) and not any(c in value for c in (RECORD_SEPARATOR, FIELD_SEPARATOR, '\n', '\r'))


class AccountStore:
    """Username to password records with explicit flush."""

    def __init__(self, path: str = ACCOUNTS_FILE):
        self.path = Path(path)
        self.records: List[AccountRecord] = []

    def load(self) -> List[AccountRecord]:
        """Read the backing file. A missing or unreadable file means no accounts."""
        self.records = []
        try:
            lines = self.path.read_text(encoding='utf-8').splitlines()
        except FileNotFoundError:
            logger.info(f"No account file at {self.path}, starting empty")
            return self.records
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read account file {self.path}, starting empty: {e}")
            return self.records

        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            record = parse_record(line)
            if record is None:
                logger.warning(f"Skipping malformed account line {number} in {self.path}")
                continue
            self.records.append(record)

        logger.info(f"Loaded {len(self.records)} account(s) from {self.path}")
        return self.records

    def lookup(self, username: str, password: str) -> LookupResult:
        """Check credentials. The first record with a matching name decides."""
        for record in self.records:
            if record.username == username:
                if record.password == password:
                    return LookupResult.CORRECT_PASSWORD
                return LookupResult.WRONG_PASSWORD
        return LookupResult.ABSENT

    def insert(self, username: str, password: str) -> AccountRecord:
        """Append a record. Callers check ``lookup`` first; duplicates are not rejected here."""
        record = AccountRecord(username, password)
        self.records.append(record)
        return record

    def flush(self):
        """Write every in-memory record back to the backing file."""
        content = ''.join(format_record(record) + '\n' for record in self.records)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise AccountStoreError(f"Failed to write account file {self.path}: {e}") from e
        logger.info(f"Saved {len(self.records)} account(s) to {self.path}")

    def __len__(self) -> int:
        return len(self.records)
