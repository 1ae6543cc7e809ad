"""Application route blueprints."""

from .auth import auth_bp
from .courses import courses_bp
from .enrollments import enrollments_bp
from .reports import reports_bp
from .seed import seed_bp
from .students import students_bp

BLUEPRINTS = (
    auth_bp,
    students_bp,
    courses_bp,
    enrollments_bp,
    reports_bp,
    seed_bp,
)

__all__ = [
    "BLUEPRINTS",
    "auth_bp",
    "students_bp",
    "courses_bp",
    "enrollments_bp",
    "reports_bp",
    "seed_bp",
]
