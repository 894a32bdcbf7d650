class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidStatus(ValidationError):
    """Raised when a status is not one of present/absent/late/excused."""

    def __init__(self, value):
        super().__init__(f"Invalid attendance status: {value!r}")
        self.value = value


class UnknownStudent(DomainError):
    """Raised when a student id is not part of the current roster."""

    def __init__(self, student_id):
        super().__init__(f"Unknown student: {student_id!r}")
        self.student_id = student_id


class UnknownSubject(DomainError):
    """Raised when a subject reference does not resolve to a known subject."""

    def __init__(self, subject):
        super().__init__(f"Unknown subject: {subject!r}")
        self.subject = subject


class MatchAmbiguous(DomainError):
    """Raised when more than one attendance record matches a student."""

    def __init__(self, student_name: str, strategy: str, candidates: int):
        super().__init__(
            f"{candidates} records match {student_name!r} using strategy {strategy!r}"
        )
        self.student_name = student_name
        self.strategy = strategy
        self.candidates = candidates


class SessionStateError(DomainError):
    """Raised when an operation is not allowed in the current session state."""


class PersistenceError(DomainError):
    """Raised when the document store fails; the caller may retry."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class UnknownSession(DomainError):
    """Raised when an attendance session id is not open (closed or never opened)."""

    def __init__(self, session_id):
        super().__init__(f"Unknown attendance session: {session_id!r}")
        self.session_id = session_id
