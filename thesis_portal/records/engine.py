"""
Records Filter, Sort and Export

Pure functions over sequences of SubmissionRecord snapshots. Nothing here
touches the database: the records view hands in its latest snapshot and the
criteria parsed from the request, and gets back a new ordered list.
"""

from __future__ import annotations

import csv
import io
import unicodedata
from dataclasses import dataclass, fields
from datetime import date, datetime, time, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from thesis_portal.models.enums import category_labels as default_category_labels
from thesis_portal.models.snapshots import SubmissionRecord

ALL = 'all'

# Search selector -> wording used in the status line
SEARCH_FIELDS = {
    'all': 'all fields',
    'name': 'name',
    'id_school': 'ID/school',
    'program': 'program',
    'thesis_title': 'thesis title',
}

SORT_KEYS = ('submission_date', 'full_name', 'campus', 'thesis_title', 'user_type')
DEFAULT_SORT_KEY = 'submission_date'

EXPORT_HEADERS = ('Name', 'Type', 'ID/School', 'Campus', 'Program', 'Thesis Title', 'Date')

# Marks a date input that could not be parsed
_INVALID = object()

Predicate = Callable[[SubmissionRecord], bool]


@dataclass(frozen=True)
class Criteria:
    """User-selected search, filter and sort settings for the records tab."""

    search_term: str = ''
    search_field: str = ALL
    category: str = ALL
    campus: str = ALL
    exact_date: str = ''
    range_start: str = ''
    range_end: str = ''
    sort_by: str = DEFAULT_SORT_KEY
    sort_order: str = 'desc'

    @classmethod
    def from_args(cls, args: Mapping) -> 'Criteria':
        """Build criteria from request query arguments, ignoring unknown keys."""
        values = {}
        for f in fields(cls):
            raw = args.get(f.name)
            if raw is None:
                continue
            values[f.name] = str(raw).strip()
        if not values.get('search_field'):
            values.pop('search_field', None)
        if not values.get('category'):
            values.pop('category', None)
        if not values.get('campus'):
            values.pop('campus', None)
        return cls(**values)

    def to_args(self) -> dict:
        """Non-default criteria as query arguments."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) != f.default
        }

    @property
    def is_filtered(self) -> bool:
        return bool(
            self.search_term.strip()
            or self.category != ALL
            or self.campus != ALL
            or self.exact_date
            or self.range_start
            or self.range_end
        )


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_moment(value, end_of_day=False):
    """Parse a date or datetime filter input.

    Returns None for an unset input and _INVALID for one that cannot be read.
    A date without a time covers the whole day when used as an end bound.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    text = str(value).strip()
    if not text:
        return None
    try:
        if len(text) <= 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min)
        return _naive_utc(datetime.fromisoformat(text))
    except ValueError:
        return _INVALID


def _never(record):
    return False


def _search_predicate(term: str, field: str) -> Optional[Predicate]:
    needle = term.strip().casefold()
    if not needle:
        return None

    if field == 'name':
        def values(r):
            return (r.full_name,)
    elif field == 'id_school':
        def values(r):
            return (r.id_or_institution,)
    elif field == 'program':
        def values(r):
            return (r.program or '',)
    elif field == 'thesis_title':
        def values(r):
            return (r.thesis_title,)
    else:
        def values(r):
            return (r.full_name, r.thesis_title, r.student_number or '', r.school or '', r.program or '')

    def predicate(record):
        return any(needle in (v or '').casefold() for v in values(record))
    return predicate


def _date_predicate(criteria: Criteria) -> Optional[Predicate]:
    # An exact date wins over the range; the range is not consulted at all.
    if criteria.exact_date:
        moment = _parse_moment(criteria.exact_date)
        if moment is _INVALID:
            return _never
        if moment is not None:
            day = moment.date()
            return lambda r: _naive_utc(r.submission_date).date() == day

    start = _parse_moment(criteria.range_start)
    end = _parse_moment(criteria.range_end, end_of_day=True)
    if start is _INVALID or end is _INVALID:
        return _never
    if start is None and end is None:
        return None

    def predicate(record):
        ts = _naive_utc(record.submission_date)
        if start is not None and ts < start:
            return False
        if end is not None and ts > end:
            return False
        return True
    return predicate


def build_predicates(criteria: Criteria) -> List[Predicate]:
    predicates = []
    search = _search_predicate(criteria.search_term, criteria.search_field)
    if search is not None:
        predicates.append(search)
    if criteria.category != ALL:
        category = criteria.category
        predicates.append(lambda r: r.user_type == category)
    if criteria.campus != ALL:
        campus = criteria.campus
        predicates.append(lambda r: r.campus == campus)
    dated = _date_predicate(criteria)
    if dated is not None:
        predicates.append(dated)
    return predicates


def collation_key(value: Optional[str]):
    """Locale-style ordering key: accents and case ignored first, then lowercase before uppercase."""
    text = value or ''
    decomposed = unicodedata.normalize('NFKD', text)
    base = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text.swapcase())


def _sort_key(sort_by: str):
    if sort_by == 'submission_date':
        return lambda r: _naive_utc(r.submission_date)
    return lambda r: collation_key(getattr(r, sort_by))


def filter_sort(records: Iterable[SubmissionRecord], criteria: Optional[Criteria] = None) -> List[SubmissionRecord]:
    """Return the records matching every active criterion, in the requested order.

    The input is never modified; a new list is returned on every call. Ties
    keep their input order.
    """
    criteria = criteria or Criteria()
    predicates = build_predicates(criteria)
    matched = [r for r in records if all(p(r) for p in predicates)]

    sort_by = criteria.sort_by if criteria.sort_by in SORT_KEYS else DEFAULT_SORT_KEY
    descending = criteria.sort_order != 'asc'
    return sorted(matched, key=_sort_key(sort_by), reverse=descending)


def campus_options(records: Iterable[SubmissionRecord]) -> List[str]:
    """Distinct campuses present in the records, for the campus dropdown."""
    return sorted({r.campus for r in records}, key=collation_key)


def summarize(criteria: Criteria, shown: int, total: int, labels: Optional[Mapping[str, str]] = None) -> str:
    """Status line such as 'Showing 1 of 2 records matching "alice" in all fields'."""
    labels = labels or default_category_labels()
    text = f'Showing {shown} of {total} records'
    term = criteria.search_term.strip()
    if term:
        text += f' matching "{term}" in {SEARCH_FIELDS.get(criteria.search_field, "all fields")}'
    if criteria.category != ALL:
        text += f' for {labels.get(criteria.category, criteria.category)}s'
    if criteria.campus != ALL:
        text += f' at {criteria.campus}'
    if criteria.exact_date:
        text += f' on {criteria.exact_date}'
    elif criteria.range_start or criteria.range_end:
        text += f' from {criteria.range_start or "start"} to {criteria.range_end or "end"}'
    return text


def export_csv(records: Sequence[SubmissionRecord], date_format: str = '%m/%d/%Y',
               labels: Optional[Mapping[str, str]] = None) -> str:
    """Render records as CSV text with a fixed header and every field quoted."""
    labels = labels or default_category_labels()
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(EXPORT_HEADERS)
    for r in records:
        writer.writerow([
            r.full_name,
            labels.get(r.user_type, r.user_type),
            r.id_or_institution,
            r.campus,
            r.program or '',
            r.thesis_title,
            r.submission_date.strftime(date_format),
        ])
    return buf.getvalue()
