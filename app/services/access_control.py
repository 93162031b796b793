"""
Access control engine for stored files.

Owns the access-level state machine of a FileRecord:

    only_me  <->  anyone_with_link  <->  timed_access
       ^                                      |
       +------ lazy demotion on expiry -------+

Invariants kept on every write:
    only_me           -> share_token is None, share_token_expires is None
    anyone_with_link  -> share_token set,     share_token_expires is None
    timed_access      -> share_token set,     share_token_expires in the future

Every grant of anyone_with_link / timed_access mints a fresh token, which
invalidates any link handed out before. Expiry is never swept in the
background: a timed_access record whose expiry has passed is demoted the
first time its token is presented, and that request fails.

Direct access (download by id / by name) is decided only by ownership and
the shared_with list; the access level governs the tokenized link path.
"""
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    LinkExpiredError,
    NotFoundError,
)
from app.logging_config import setup_logging, token_preview
from app.models.file_record import AccessLevel, FileRecord
from app.services import file_records
from app.utils.datetime import ensure_aware, hours_to_timedelta, utcnow

logger = setup_logging()

MIN_SHARE_TOKEN_BYTES = 16
SHARE_LINK_PATH = "/api/v1/share/{token}"


def generate_share_token(nbytes: int | None = None) -> str:
    """
    Mint a share token: ``nbytes`` from the OS CSPRNG rendered as hex.

    The output is always ``2 * nbytes`` characters. With at least 16 bytes
    (128 bits) collisions and guessing are negligible, so no uniqueness
    retry loop is needed.
    """
    nbytes = nbytes or settings.SHARE_TOKEN_BYTES
    if nbytes < MIN_SHARE_TOKEN_BYTES:
        raise ValueError(f"Share tokens need at least {MIN_SHARE_TOKEN_BYTES} bytes of entropy")
    return secrets.token_hex(nbytes)


def parse_access_level(value: str | AccessLevel) -> AccessLevel:
    try:
        return AccessLevel(value)
    except ValueError:
        allowed = ", ".join(level.value for level in AccessLevel)
        raise InvalidArgumentError(
            f"Invalid access level '{value}'. Allowed values: {allowed}"
        ) from None


def build_share_link(base_url: str, share_token: str) -> str:
    return base_url.rstrip("/") + SHARE_LINK_PATH.format(token=share_token)


@dataclass
class ShareLink:
    """A share link together with the record state it was built from."""
    record: FileRecord
    url: str


class AccessControlEngine:
    """
    Authorization and access-level transitions for FileRecords.

    Args:
        db: Database session used for lookups and compare-and-swap writes
        clock: Returns the current aware UTC time; injectable for tests
        token_bytes: Share token entropy in bytes (default from config)
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        token_bytes: int | None = None,
    ):
        self.db = db
        self.clock = clock
        self.token_bytes = token_bytes or settings.SHARE_TOKEN_BYTES
        if self.token_bytes < MIN_SHARE_TOKEN_BYTES:
            raise ValueError(
                f"Share tokens need at least {MIN_SHARE_TOKEN_BYTES} bytes of entropy"
            )

    # Owner operations

    def set_access_level(
        self,
        file_id: str,
        caller_id: int,
        access_level: str | AccessLevel,
        expiry_hours: int | float | None = None,
    ) -> FileRecord:
        """
        Move a file to a new access level.

        Checks run in order: record exists, caller is the owner, level is
        recognized, expiry is present and positive for timed_access.

        Raises:
            NotFoundError: No record with this id
            ForbiddenError: Caller is not the owner (shared users included)
            InvalidArgumentError: Unknown level or bad expiry_hours
        """

        def mutation(record: FileRecord) -> dict:
            self._require_owner(record, caller_id)
            level = parse_access_level(access_level)

            if level == AccessLevel.ONLY_ME:
                return {
                    "access_level": level.value,
                    "share_token": None,
                    "share_token_expires": None,
                }

            token = generate_share_token(self.token_bytes)
            if level == AccessLevel.ANYONE_WITH_LINK:
                return {
                    "access_level": level.value,
                    "share_token": token,
                    "share_token_expires": None,
                }

            return {
                "access_level": level.value,
                "share_token": token,
                "share_token_expires": self._expiry_from_hours(expiry_hours),
            }

        record = file_records.atomic_update(self.db, file_id, mutation)
        logger.info(
            f"Access level changed: file_id={file_id}, level={record.access_level}, "
            f"token={token_preview(record.share_token)}, "
            f"expires={record.share_token_expires}"
        )
        return record

    def generate_share_link(self, file_id: str, caller_id: int, base_url: str) -> str:
        """
        Return the absolute share link for the file's current token.

        Never mints a token; calling it twice yields the same link.

        Raises:
            NotFoundError: No record with this id
            ForbiddenError: Caller is not the owner
            InvalidStateError: File is only_me
        """
        return self.describe_share_link(file_id, caller_id, base_url).url

    def describe_share_link(self, file_id: str, caller_id: int, base_url: str) -> ShareLink:
        """Like generate_share_link(), also returning the record the link was read from."""
        record = self._get_record(file_id)
        self._require_owner(record, caller_id)

        if record.access_level == AccessLevel.ONLY_ME or not record.share_token:
            raise InvalidStateError(
                "File is private. Change its access level before generating a share link"
            )

        return ShareLink(record=record, url=build_share_link(base_url, record.share_token))

    # Read authorization

    def authorize_direct_access_by_id(self, file_id: str, caller_id: int) -> FileRecord:
        """
        Raises:
            NotFoundError: No record with this id
            ForbiddenError: Caller is neither owner nor in shared_with
        """
        record = self._get_record(file_id)
        if not record.can_access_directly(caller_id):
            logger.warning(
                f"Direct access denied: file_id={file_id}, user_id={caller_id}, "
                f"owner={record.owner_id}"
            )
            raise ForbiddenError("You do not have permission to download this file")
        return record

    def authorize_direct_access_by_name(self, file_name: str, caller_id: int) -> FileRecord:
        """
        Raises:
            NotFoundError: No visible record with this name. Missing and
                not-permitted are reported identically so names owned by
                other users do not leak.
        """
        record = file_records.find_by_name_for_user(self.db, file_name, caller_id)
        if record is None:
            raise NotFoundError(
                "File not found or you do not have permission to download this file"
            )
        return record

    def authorize_share_link_access(self, share_token: str) -> FileRecord:
        """
        Resolve a share token for the public link path.

        An expired timed_access record is demoted to only_me and committed
        before LinkExpiredError is raised.

        Raises:
            NotFoundError: No record holds this token (never issued or rotated)
            ForbiddenError: Record is only_me
            LinkExpiredError: Timed access has elapsed
        """
        if not share_token:
            raise NotFoundError("Share link not found")

        record = file_records.find_by_share_token(self.db, share_token)
        if record is None:
            logger.warning(f"Unknown share token presented: {token_preview(share_token)}")
            raise NotFoundError("Share link not found")

        if record.access_level == AccessLevel.ONLY_ME:
            raise ForbiddenError("This file is not shared")

        if record.access_level == AccessLevel.TIMED_ACCESS and self._is_expired(record):
            self._demote_expired(record.id, share_token)
            raise LinkExpiredError()

        return record

    # Internals

    def _get_record(self, file_id: str) -> FileRecord:
        record = file_records.find_by_id(self.db, file_id)
        if record is None:
            raise NotFoundError("File not found")
        return record

    @staticmethod
    def _require_owner(record: FileRecord, caller_id: int) -> None:
        if not record.is_owned_by(caller_id):
            logger.warning(
                f"Owner-only operation denied: file_id={record.id}, user_id={caller_id}"
            )
            raise ForbiddenError("Only the file owner can change sharing settings")

    def _expiry_from_hours(self, expiry_hours: int | float | None) -> datetime:
        if expiry_hours is None:
            raise InvalidArgumentError("expiry_hours is required for timed_access")
        try:
            delta = hours_to_timedelta(expiry_hours)
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid expiry_hours: {e}") from e
        if expiry_hours <= 0:
            raise InvalidArgumentError("expiry_hours must be greater than 0")
        if not delta:
            raise InvalidArgumentError("expiry_hours is below millisecond resolution")
        try:
            return self.clock() + delta
        except OverflowError as e:
            raise InvalidArgumentError("expiry_hours is too large") from e

    def _is_expired(self, record: FileRecord) -> bool:
        expires = ensure_aware(record.share_token_expires)
        # Missing expiry on a timed record breaks the invariant; treat as elapsed
        return expires is None or expires < self.clock()

    def _demote_expired(self, file_id: str, share_token: str) -> None:
        def mutation(record: FileRecord) -> dict | None:
            # Someone rotated or revoked the token meanwhile; nothing to demote
            if record.share_token != share_token or record.access_level != AccessLevel.TIMED_ACCESS:
                return None
            if not self._is_expired(record):
                return None
            return {
                "access_level": AccessLevel.ONLY_ME.value,
                "share_token": None,
                "share_token_expires": None,
            }

        file_records.atomic_update(self.db, file_id, mutation)
        logger.info(
            f"Timed access expired, file demoted to only_me: file_id={file_id}, "
            f"token={token_preview(share_token)}"
        )
