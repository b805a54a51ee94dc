"""
Statistics Services

Aggregates for the Statistics tab, computed from a records snapshot.
"""

from collections import Counter
from datetime import datetime

from thesis_portal.models import SubmitterCategory


def compute_statistics(records, campus_options=(), program_options=(), today=None):
    """Compute submission counts for dashboard visualization."""
    today = today or datetime.utcnow().date()

    category_counts = {c.value: 0 for c in SubmitterCategory}
    campus_counts = {name: 0 for name in campus_options}
    program_counts = {name: 0 for name in program_options}
    monthly = Counter()
    submitted_today = 0

    for r in records:
        category_counts[r.user_type] = category_counts.get(r.user_type, 0) + 1
        campus_counts[r.campus] = campus_counts.get(r.campus, 0) + 1
        if r.program:
            program_counts[r.program] = program_counts.get(r.program, 0) + 1
        monthly[r.submission_date.strftime('%Y-%m')] += 1
        if r.submission_date.date() == today:
            submitted_today += 1

    total = len(records)
    affiliated = category_counts.get(SubmitterCategory.AFFILIATED.value, 0)
    affiliated_pct = round(affiliated / total * 100, 1) if total else 0.0

    return {
        'total': total,
        'today': submitted_today,
        'category_counts': category_counts,
        'affiliated_pct': affiliated_pct,
        'campus_counts': campus_counts,
        'program_counts': program_counts,
        'monthly_counts': dict(sorted(monthly.items())),
        'top_campus': max(campus_counts, key=campus_counts.get) if total else None,
    }
