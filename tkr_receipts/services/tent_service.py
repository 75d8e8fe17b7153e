"""Tent layout and booking admin views over sample data."""

import random
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Optional

from tkr_receipts.models.listing import Page, PaginationParams, SortDirection
from tkr_receipts.models.tent import Booking, BookingStatus, GridPosition, Tent, TentStatus
from tkr_receipts.utils.listing import matches_search, parse_date, text_sort_key
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

BOOKINGS_PER_PAGE = 10
SAMPLE_BOOKING_COUNT = 25

SAMPLE_CONTACTS = [
    "0551234567",
    "0509876543",
    "0561234567",
    "0521234567",
    "0581234567",
    "0591234567",
    "0501234567",
    "0511234567",
]

BOOKING_CSV_HEADERS = ["Booking ID", "Tent ID", "Contact", "Date", "Duration (hrs)", "Status", "Notes"]

# Tent number ranges of each side of the track, in display order
SIDES = {
    "top": range(1, 9),
    "right": range(9, 17),
    "bottom_right": range(17, 25),
    "left": range(25, 41),
    "bottom": range(41, 49),
}


def _tent(
    number: int,
    occupied: bool,
    reserved: bool,
    phone_suffix: int,
    occupied_hours: Optional[int],
    reserved_hours: Optional[int],
    row: int,
    col: int,
) -> Tent:
    if occupied:
        return Tent(
            id=f"T{number}",
            status=TentStatus.OCCUPIED,
            booked_by=f"055123456{phone_suffix}",
            hours=occupied_hours,
            position=GridPosition(row=row, col=col),
        )
    if reserved:
        return Tent(
            id=f"T{number}",
            status=TentStatus.RESERVED,
            booked_by=f"050987654{phone_suffix}",
            hours=reserved_hours,
            position=GridPosition(row=row, col=col),
        )
    return Tent(id=f"T{number}", position=GridPosition(row=row, col=col))


def generate_sample_tents() -> list[Tent]:
    """The 48 tents around the track with their demo occupancy."""
    tents = []
    for i in range(1, 9):
        tents.append(_tent(i, i <= 2, i <= 4, i, 4, 2, row=0, col=i - 1))
    for i in range(9, 17):
        tents.append(_tent(i, i <= 11, i <= 13, i - 8, 3, 1, row=i - 8, col=8))
    for i in range(17, 25):
        tents.append(_tent(i, False, i <= 19, i - 16, None, 2, row=8, col=24 - i))
    for i in range(25, 41):
        tents.append(_tent(i, i <= 28, i <= 32, i - 24, 4, 3, row=i - 24, col=0))
    for i in range(41, 49):
        tents.append(_tent(i, False, i <= 43, i - 40, None, 1, row=9, col=i - 41))
    return tents


def tent_number(tent: Tent) -> int:
    return int(tent.id.lstrip("T"))


def filter_tents(tents: list[Tent], status: Optional[TentStatus] = None) -> list[Tent]:
    """Tents with the given status; all tents when status is None."""
    if status is None:
        return list(tents)
    return [t for t in tents if t.status == status]


def status_counts(tents: list[Tent]) -> dict[str, int]:
    """Number of tents per status, plus the total."""
    counts = Counter(t.status for t in tents)
    return {
        "total": len(tents),
        **{status.value: counts.get(status, 0) for status in TentStatus},
    }


def group_by_side(tents: list[Tent]) -> dict[str, list[Tent]]:
    """Split tents into the sides of the track, each ordered by tent number."""
    groups: dict[str, list[Tent]] = {side: [] for side in SIDES}
    for tent in sorted(tents, key=tent_number):
        number = tent_number(tent)
        for side, numbers in SIDES.items():
            if number in numbers:
                groups[side].append(tent)
                break
    return groups


def generate_sample_bookings(
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> list[Booking]:
    """
    Sample bookings for tents T1..T25, newest date first.

    Args:
        today: Reference date (defaults to today)
        rng: Random source; pass a seeded one for repeatable data
    """
    today = today or date.today()
    rng = rng or random.Random()
    bookings = []
    for i in range(1, SAMPLE_BOOKING_COUNT + 1):
        booking_date = today + timedelta(days=rng.randint(-15, 14))
        midnight = datetime.combine(booking_date, datetime.min.time())
        bookings.append(
            Booking(
                booking_id=f"BKG-{i:03d}",
                tent_id=f"T{i}",
                contact=rng.choice(SAMPLE_CONTACTS),
                date=booking_date.isoformat(),
                duration=rng.randint(1, 8),
                status=BookingStatus.OCCUPIED if rng.random() > 0.5 else BookingStatus.RESERVED,
                created_at=midnight - timedelta(days=rng.random() * 7),
                notes="Special requirements noted" if rng.random() > 0.7 else None,
            )
        )
    bookings.sort(key=lambda b: b.date, reverse=True)
    return bookings


def _booking_sort_key(field: str):
    if field in ("date", "created_at"):
        return lambda b: parse_date(getattr(b, field))
    if field == "duration":
        return lambda b: b.duration
    if field == "status":
        return lambda b: b.status.value
    return lambda b: text_sort_key(getattr(b, field))


def search_bookings(
    bookings: list[Booking],
    term: str = "",
    status: Optional[BookingStatus] = None,
    sort_field: str = "date",
    direction: SortDirection = SortDirection.DESC,
    pagination: Optional[PaginationParams] = None,
) -> Page[Booking]:
    """
    Filter, sort and paginate bookings for the bookings table.

    The search term matches contact, tent id and booking id, case
    insensitively.

    Raises:
        ValueError: If sort_field is not a booking field
    """
    if sort_field not in Booking.model_fields:
        raise ValueError(f"Unknown sort field: {sort_field}")

    matching = [
        b
        for b in bookings
        if matches_search(term, (b.contact, b.tent_id, b.booking_id))
        and (status is None or b.status == status)
    ]
    matching.sort(key=_booking_sort_key(sort_field), reverse=direction == SortDirection.DESC)
    pagination = pagination or PaginationParams(page_size=BOOKINGS_PER_PAGE)
    logger.debug(
        "Bookings filtered",
        term=term,
        status=status.value if status else None,
        matches=len(matching),
    )
    return Page[Booking].from_items(matching, pagination)


def bookings_to_csv(bookings: list[Booking]) -> str:
    """CSV text of the bookings, header first."""
    lines = [",".join(BOOKING_CSV_HEADERS)]
    for b in bookings:
        lines.append(
            ",".join(
                [b.booking_id, b.tent_id, b.contact, b.date, str(b.duration), b.status.value, b.notes or ""]
            )
        )
    return "\n".join(lines)


def bookings_to_tsv(bookings: list[Booking]) -> str:
    """Tab-separated rows for pasting into a spreadsheet."""
    return "\n".join(
        f"{b.booking_id}\t{b.tent_id}\t{b.contact}\t{b.date}\t{b.duration}h\t{b.status.value}\t{b.notes or ''}"
        for b in bookings
    )


def bookings_export_filename(today: Optional[date] = None) -> str:
    return f"tent-bookings-{(today or date.today()).isoformat()}.csv"
