# authgate/models/__init__.py

from authgate.models.user import User  # noqa: F401
from authgate.models.verification_token import VerificationToken  # noqa: F401
from authgate.models.password_reset_token import PasswordResetToken  # noqa: F401
