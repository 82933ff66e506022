"""Backend endpoint paths."""

USERS_ME = "/api/users/me"
USERS_REGISTER = "/api/users/register"

AUTH_SEND_VERIFICATION_CODE = "/api/auth/send-verification-code"
AUTH_VERIFY_CODE = "/api/auth/verify-code"
AUTH_CHECK_EMAIL_VERIFIED = "/api/auth/check-email-verified"
AUTH_CHECK_EMAIL_EXISTS = "/api/auth/check-email-exists"
