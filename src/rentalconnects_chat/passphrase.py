"""Chat passphrase persistence.

The passphrase never leaves this machine; it sits in one storage slot so the
user does not have to re-enter it every session.
"""

import logging
import sqlite3
from typing import Optional

from . import db

logger = logging.getLogger(__name__)

STORAGE_KEY = "rc.chat.passphrase"


def save_passphrase(passphrase: Optional[str]) -> None:
    """Store passphrase, or clear the slot when it is empty."""
    if not passphrase:
        db.remove_item(STORAGE_KEY)
        return
    db.set_item(STORAGE_KEY, passphrase)


def load_passphrase() -> str:
    """Return the stored passphrase, or "" if none is set or storage is unavailable."""
    try:
        return db.get_item(STORAGE_KEY) or ""
    except (sqlite3.Error, OSError) as e:
        logger.warning("load_passphrase: storage unavailable: %s", e)
        return ""
