"""One-time code generation."""

import secrets

OTP_MIN = 100000
OTP_MAX = 999999


class OtpGenerator:
    """
    Produces 6-digit one-time codes.

    Codes are uniform over 100000..999999 inclusive and drawn from the
    secrets module, so they never carry a leading zero.
    """

    def generate(self) -> str:
        return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
