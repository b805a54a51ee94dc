"""
Closed value sets shared by the models, the forms and the records engine.
"""

import enum


class SubmitterCategory(str, enum.Enum):
    AFFILIATED = 'affiliated'
    EXTERNAL = 'external'

    def label(self, institution='LPU'):
        if self is SubmitterCategory.AFFILIATED:
            return f'{institution} Student'
        return f'Non-{institution} Student'


class Role(str, enum.Enum):
    ADMIN = 'Admin'
    READER = 'Reader'


class AccountStatus(str, enum.Enum):
    ACTIVE = 'Active'
    INACTIVE = 'Inactive'


class ChangeKind(str, enum.Enum):
    INSERT = 'INSERT'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'


def category_labels(institution='LPU'):
    """Map stored category values to their display labels."""
    return {c.value: c.label(institution) for c in SubmitterCategory}
