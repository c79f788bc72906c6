# hr_compliance/models/__init__.py
from hr_compliance.db.base import Base  # noqa: F401

from . import employee                   # noqa: F401
from . import client                     # noqa: F401
from . import compliance_type            # noqa: F401
from . import compliance_period_record   # noqa: F401
