"""Error taxonomy for the tailoring pipeline.

Fatal conditions are raised as exceptions carrying a machine-readable ``kind``
and the offending ``field``. Recoverable conditions (soft repairs, rejected
skills, layout overflow) are never raised; their kinds are recorded in the
validation / layout reports instead.
"""

# Recoverable kinds (recorded, never raised)
MISSING_FIELD = "MissingField"
SKILL_REJECTED = "SkillRejected"
TITLE_RESTORED = "TitleRestored"
CREDENTIAL_RESTORED = "CredentialRestored"
LAYOUT_OVERFLOW = "LayoutOverflow"


class TruthLockError(Exception):
    """Base class for every fatal error raised by the engine."""

    kind = "TruthLockError"

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"kind": self.kind, "field": self.field, "message": self.message}


class ThemeError(TruthLockError):
    """Raised when a theme override does not fit the design-system shape."""

    kind = "ThemeError"


# --- Fabrication guard ---

class ValidationError(TruthLockError):
    """A tailored resume violates the truth-lock and cannot be repaired."""

    kind = "ValidationError"


class IdentityMismatch(ValidationError):
    kind = "IdentityMismatch"


class FabricatedEntry(ValidationError):
    kind = "FabricatedEntry"


class FabricatedCertification(ValidationError):
    kind = "FabricatedCertification"


class DateTampering(ValidationError):
    kind = "DateTampering"


class UnknownExperience(ValidationError):
    kind = "UnknownExperience"


class UnknownEducation(ValidationError):
    kind = "UnknownEducation"


# --- Oracle boundary ---

class OracleError(TruthLockError):
    """The external rewrite call failed (network, auth, exhausted retries)."""

    kind = "OracleError"


class OracleResponseError(OracleError):
    """The oracle answered, but the answer is not usable resume JSON."""

    kind = "OracleResponseError"


class TruncatedResponse(OracleResponseError):
    kind = "TruncatedResponse"


class MalformedJSON(OracleResponseError):
    kind = "MalformedJSON"
