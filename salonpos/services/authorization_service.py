"""
Authorization policy for destructive operations (sale deletion).

The admin passphrase is stored as a werkzeug hash. After a successful deletion
the policy remembers the time in its key-value store; until the cooldown
expires the passphrase is not asked again.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import MutableMapping, Optional

from werkzeug.security import check_password_hash

from salonpos.exceptions import DeletionAuthError

logger = logging.getLogger(__name__)

LAST_AUTH_KEY = 'delete_auth_at'


class AuthorizationPolicy:
    """
    Passphrase check with a time-boxed cooldown.

    Args:
        store: Key-value mapping that survives between calls (Flask session,
            dict in tests)
        passphrase_hash: werkzeug hash of the admin passphrase
        cooldown_seconds: How long a successful check stays valid
    """

    def __init__(self, store: MutableMapping, passphrase_hash: Optional[str], cooldown_seconds: int = 300):
        self.store = store
        self.passphrase_hash = passphrase_hash
        self.cooldown = timedelta(seconds=cooldown_seconds)

    def is_authorized(self, now: datetime) -> bool:
        """True while the last successful check is inside the cooldown window."""
        raw = self.store.get(LAST_AUTH_KEY)
        if not raw:
            return False
        try:
            last = datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            return False
        return last <= now < last + self.cooldown

    def remaining(self, now: datetime) -> int:
        """Whole seconds left in the cooldown window, 0 when outside it."""
        if not self.is_authorized(now):
            return 0
        last = datetime.fromisoformat(self.store[LAST_AUTH_KEY])
        left = last + self.cooldown - now
        return max(0, math.ceil(left.total_seconds()))

    def record_authorization(self, now: datetime) -> None:
        """Start (or restart) the cooldown window at now."""
        self.store[LAST_AUTH_KEY] = now.isoformat()

    def check_passphrase(self, passphrase: Optional[str]) -> bool:
        if not self.passphrase_hash or not passphrase:
            return False
        return check_password_hash(self.passphrase_hash, passphrase)

    def authorize(self, passphrase: Optional[str], now: datetime) -> None:
        """
        Pass when inside the cooldown or when the passphrase matches.

        Nothing is recorded here: the caller calls record_authorization()
        once the protected operation has succeeded.

        Raises:
            DeletionAuthError: passphrase missing or wrong
        """
        if self.is_authorized(now):
            return

        if not self.check_passphrase(passphrase):
            logger.warning("Sale deletion refused: incorrect passphrase")
            raise DeletionAuthError()
