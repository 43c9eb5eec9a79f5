from .DateTimeSerializer import DateTimeSerializerVisitor
from .LoggingSetup import setup_logging
from .PasswordHasher import PasswordHasher
from .Praise import PRAISE_TEMPLATES, pick_praise

__all__ = [
    'DateTimeSerializerVisitor',
    'setup_logging',
    'PasswordHasher',
    'PRAISE_TEMPLATES',
    'pick_praise'
]
