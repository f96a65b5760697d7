from functools import wraps

from flask_login import current_user

from questboard.utils.errors import UnauthorizedError


def admin_required(f):
    """Allow only authenticated admins through; everyone else gets a 403."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            raise UnauthorizedError("Admin access required")
        return f(*args, **kwargs)
    return decorated
