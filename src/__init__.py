"""Mail OTP Relay - verification code broker for login automation."""

# Application version (SemVer)
__version__ = "1.0.0"
__license__ = "MIT"
