"""In-memory registry of extracted verification codes."""

import asyncio
import re
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger

from src.constants import OTP
from src.core.exceptions import RegistryFullError, ValidationError
from src.services.otp_relay.models import (
    CodeLookupResult,
    CodeQuery,
    CodeState,
    RegistryStats,
    VerificationCode,
)
from src.utils.masking import mask_code

_CODE_RE = re.compile(OTP.CODE_PATTERN)

NO_MATCHING_CODES = "no matching codes"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CodeRegistry:
    """
    Authoritative store of verification codes with TTL expiry and single consumption.

    All record access goes through one re-entrant lock; ``get_latest`` selects
    and marks the winner inside the same critical section, so a record is
    handed to at most one caller.
    """

    def __init__(
        self,
        ttl_minutes: int = OTP.CODE_TTL_MINUTES,
        max_records: int = OTP.MAX_RECORDS,
        sweep_interval_seconds: float = OTP.SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize code registry.

        Args:
            ttl_minutes: Lifetime of a stored code
            max_records: Capacity; ``store`` raises RegistryFullError beyond it
            sweep_interval_seconds: Interval of the background sweep task
            clock: Returns the current UTC time (injectable for tests)
        """
        if ttl_minutes <= 0:
            raise ValueError("ttl_minutes must be positive")
        if max_records <= 0:
            raise ValueError("max_records must be positive")

        self._ttl = timedelta(minutes=ttl_minutes)
        self._max_records = max_records
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._codes: Dict[str, VerificationCode] = {}
        self._lock = threading.RLock()
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def capacity(self) -> int:
        return self._max_records

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def store(
        self,
        code: str,
        platform: str,
        sender: str,
        subject: str,
        confidence: float,
        raw_envelope: str = "",
    ) -> str:
        """
        Store a newly extracted code.

        Repeated code values are stored as independent records.

        Args:
            code: 4-8 digit code
            platform: Platform tag
            sender: Envelope sender
            subject: Envelope subject
            confidence: Extraction confidence in [0, 1]
            raw_envelope: Audit payload

        Returns:
            New record id

        Raises:
            ValidationError: If the code or confidence is out of range
            RegistryFullError: If the registry is still full after a sweep
        """
        if not isinstance(code, str) or not _CODE_RE.fullmatch(code):
            raise ValidationError("Code must be 4-8 digits", field="code")
        if not 0.0 <= confidence <= 1.0:
            raise ValidationError("Confidence must be between 0 and 1", field="confidence")

        with self._lock:
            if len(self._codes) >= self._max_records:
                self.sweep()
                if len(self._codes) >= self._max_records:
                    logger.error(f"Code registry full ({self._max_records} records)")
                    raise RegistryFullError(self._max_records)

            now = self._clock()
            record = VerificationCode(
                id=str(uuid.uuid4()),
                code=code,
                platform=platform or OTP.UNKNOWN_PLATFORM,
                sender=sender,
                subject=subject,
                extracted_at=now,
                expires_at=now + self._ttl,
                confidence=confidence,
                raw_envelope=raw_envelope,
            )
            self._codes[record.id] = record

        logger.info(
            f"Stored code {mask_code(code)} for {record.platform} "
            f"(id: {record.id}, confidence: {confidence})"
        )
        return record.id

    def get_latest(self, query: Optional[CodeQuery] = None) -> CodeLookupResult:
        """
        Hand out the most recent matching code and mark it used.

        Args:
            query: Filter criteria (defaults: any platform, 300s, confidence 0.5)

        Returns:
            CodeLookupResult; ``success=False`` with "no matching codes" on a miss
        """
        query = query or CodeQuery()

        with self._lock:
            now = self._clock()
            # Anything older than the TTL is expired anyway
            max_age = timedelta(seconds=min(query.max_age_seconds, self._ttl.total_seconds()))
            best: Optional[VerificationCode] = None

            for record in self._codes.values():
                if record.used or record.is_expired(now):
                    continue
                if now - record.extracted_at > max_age:
                    continue
                if record.confidence < query.min_confidence:
                    continue
                if query.platform and record.platform != query.platform:
                    continue
                if best is None or record.extracted_at > best.extracted_at:
                    best = record

            if best is None:
                logger.debug(f"No matching codes (platform: {query.platform or 'any'})")
                return CodeLookupResult(success=False, error=NO_MATCHING_CODES)

            best.used = True

        logger.info(f"Code {mask_code(best.code)} handed out (id: {best.id}, {best.platform})")
        return CodeLookupResult(
            success=True,
            code=best.code,
            code_id=best.id,
            platform=best.platform,
            extracted_at=best.extracted_at,
            confidence=best.confidence,
        )

    def get_by_id(self, code_id: str) -> Optional[VerificationCode]:
        """Snapshot of one record, or None if the id is unknown."""
        with self._lock:
            record = self._codes.get(code_id)
            return replace(record) if record is not None else None

    def list_all(self) -> List[VerificationCode]:
        """Snapshots of all records, newest first."""
        with self._lock:
            records = [replace(record) for record in self._codes.values()]
        return sorted(records, key=lambda r: r.extracted_at, reverse=True)

    def mark_used(self, code_id: str) -> bool:
        """
        Mark a record used.

        Returns:
            False if the id is unknown
        """
        with self._lock:
            record = self._codes.get(code_id)
            if record is None:
                return False
            record.used = True
        logger.info(f"Code {code_id} marked used")
        return True

    def delete(self, code_id: str) -> bool:
        """Administrative removal; False if the id is unknown."""
        with self._lock:
            removed = self._codes.pop(code_id, None)
        if removed is None:
            return False
        logger.info(f"Code {code_id} deleted")
        return True

    def sweep(self) -> int:
        """
        Remove every record past its expiry, used or not.

        Returns:
            Number of records removed
        """
        with self._lock:
            now = self._clock()
            expired = [cid for cid, record in self._codes.items() if record.is_expired(now)]
            for cid in expired:
                del self._codes[cid]

        if expired:
            logger.debug(f"Swept {len(expired)} expired codes")
        return len(expired)

    def stats(self) -> RegistryStats:
        """Aggregate counts; each record is counted in exactly one state."""
        with self._lock:
            now = self._clock()
            records = list(self._codes.values())
            states = [record.state(now) for record in records]

        if not records:
            return RegistryStats()

        return RegistryStats(
            total=len(records),
            active=states.count(CodeState.ACTIVE),
            used=states.count(CodeState.USED),
            expired=states.count(CodeState.EXPIRED),
            platforms=sorted({record.platform for record in records}),
            average_confidence=round(sum(r.confidence for r in records) / len(records), 4),
        )

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(f"Code sweep started (interval: {self._sweep_interval}s)")

    async def stop(self, timeout: float = OTP.SWEEP_STOP_TIMEOUT_SECONDS) -> None:
        """Stop the background sweep task."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await asyncio.wait_for(self._sweep_task, timeout=timeout)
        except asyncio.CancelledError:
            pass
        except asyncio.TimeoutError:
            logger.warning(f"Code sweep did not stop within {timeout}s")
        self._sweep_task = None
        logger.info("Code sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._sweep_interval)
                self.sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in code sweep loop: {e}")
