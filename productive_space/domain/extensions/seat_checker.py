"""
Seat conflict checks for booking extensions.

While a customer edits the new end time, each edit schedules a check of
the seats booked between the current end and the candidate end. Checks
are debounced, and scheduling a new one cancels the previous task, which
also aborts its in-flight backend request. Only the newest check can
publish a result, so a slow stale response never overwrites a fresh one.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

from ...config import SEAT_CHECK_DEBOUNCE_MS
from ...timezone_utils import parse_utc

logger = logging.getLogger(__name__)

BookedSeatsFetcher = Callable[[datetime, datetime], Awaitable[dict]]


@dataclass(frozen=True)
class SeatCheckResult:
    requires_seat_selection: bool
    conflicting_seats: list[str] = field(default_factory=list)
    occupied_seats: list[str] = field(default_factory=list)
    available_seats: list[str] = field(default_factory=list)
    selected_seats: list[str] = field(default_factory=list)
    checked: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "requiresSeatSelection": data["requires_seat_selection"],
            "conflictingSeats": data["conflicting_seats"],
            "occupiedSeats": data["occupied_seats"],
            "availableSeats": data["available_seats"],
            "selectedSeats": data["selected_seats"],
            "checked": data["checked"],
        }


def detect_seat_conflict(
    original_seats: list[str],
    booked_seats: list[str],
    available_seats: Optional[list[str]] = None,
) -> SeatCheckResult:
    """
    If any of the booking's seats is taken in the extension window the
    customer must pick seats again (selection cleared); otherwise the
    original seats carry over.
    """
    booked = set(booked_seats or [])
    conflicting = [seat for seat in original_seats if seat in booked]
    if conflicting:
        return SeatCheckResult(
            requires_seat_selection=True,
            conflicting_seats=conflicting,
            occupied_seats=list(booked_seats or []),
            available_seats=list(available_seats or []),
            selected_seats=[],
        )
    return SeatCheckResult(
        requires_seat_selection=False,
        occupied_seats=list(booked_seats or []),
        available_seats=list(available_seats or []),
        selected_seats=list(original_seats),
    )


def unchecked_result(original_seats: list[str]) -> SeatCheckResult:
    """Result for an end time that does not extend the booking: nothing to check"""
    return SeatCheckResult(
        requires_seat_selection=False,
        selected_seats=list(original_seats),
        checked=False,
    )


class SeatAvailabilityChecker:
    """Debounced, cancellable seat checks for one booking"""

    def __init__(
        self,
        fetch_booked_seats: BookedSeatsFetcher,
        original_seats: list[str],
        debounce: float = SEAT_CHECK_DEBOUNCE_MS / 1000,
    ):
        self.fetch_booked_seats = fetch_booked_seats
        self.original_seats = list(original_seats)
        self.debounce = debounce
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._latest: Optional[SeatCheckResult] = None

    @property
    def latest(self) -> Optional[SeatCheckResult]:
        return self._latest

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, original_end: datetime, new_end: datetime) -> asyncio.Task:
        """Schedule a check for a candidate end time, superseding any earlier one"""
        self.cancel()
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation, original_end, new_end))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> Optional[SeatCheckResult]:
        """Result of the most recently submitted check"""
        if self._task is None:
            return self._latest
        return await self._task

    async def aclose(self) -> None:
        self.cancel()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run(self, generation: int, original_end: datetime, new_end: datetime) -> SeatCheckResult:
        if parse_utc(new_end) <= parse_utc(original_end):
            result = unchecked_result(self.original_seats)
        else:
            await asyncio.sleep(self.debounce)
            logger.debug(f"🔍 Checking seats for extension window {original_end} -> {new_end}")
            try:
                data = await self.fetch_booked_seats(original_end, new_end)
            except Exception as e:
                logger.warning(f"⚠️ Seat check for {new_end} failed, keeping previous result: {e}")
                raise
            result = detect_seat_conflict(
                self.original_seats,
                data.get("bookedSeats") or [],
                data.get("availableSeats") or [],
            )

        if generation == self._generation:
            self._latest = result
            if result.requires_seat_selection:
                logger.info(f"⚠️ Seats {result.conflicting_seats} are taken in the extension window")
        return result
