"""
Submission Form Service

Validation of the public thesis submission form.
"""

from datetime import datetime

from thesis_portal.errors import ValidationError
from thesis_portal.models import SubmitterCategory


def build_submission(form, campus_options, program_options, now=None):
    """Validate form fields and return the row values to insert.

    Affiliated submitters give a student number and program; external
    submitters give their school. The other side is stored as NULL.
    """
    errors = {}

    def get(name):
        return (form.get(name) or '').strip()

    full_name = get('full_name')
    user_type = get('user_type') or SubmitterCategory.AFFILIATED.value
    campus = get('campus')
    thesis_title = get('thesis_title')
    student_number = get('student_number')
    school = get('school')
    program = get('program')

    if not full_name:
        errors['full_name'] = 'Full name is required.'
    if user_type not in {c.value for c in SubmitterCategory}:
        errors['user_type'] = 'Please choose a submitter type.'
    if not campus:
        errors['campus'] = 'Campus is required.'
    elif campus not in campus_options:
        errors['campus'] = 'Please choose a campus from the list.'
    if not thesis_title:
        errors['thesis_title'] = 'Thesis title is required.'

    affiliated = user_type == SubmitterCategory.AFFILIATED.value
    if affiliated:
        if not student_number:
            errors['student_number'] = 'Student number is required.'
        if not program:
            errors['program'] = 'Program is required.'
        elif program not in program_options:
            errors['program'] = 'Please choose a program from the list.'
    elif user_type == SubmitterCategory.EXTERNAL.value and not school:
        errors['school'] = 'School is required.'

    if errors:
        raise ValidationError(errors)

    return {
        'full_name': full_name,
        'user_type': user_type,
        'student_number': student_number if affiliated else None,
        'school': None if affiliated else school,
        'campus': campus,
        'program': program if affiliated else None,
        'thesis_title': thesis_title,
        'submission_date': now or datetime.utcnow(),
    }
