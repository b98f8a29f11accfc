"""Failure signatures and category hints used for classification."""
import asyncio
import errno
import re
from dataclasses import dataclass, field
from enum import Enum

from ..types import ErrorCategory


class FailureSignature(Enum):
    """Recognized failure shapes, independent of the subsystem that raised them."""

    FILE_NOT_FOUND = "file_not_found"
    PERMISSION_DENIED = "permission_denied"
    NO_SPACE = "no_space"
    NOT_A_REPOSITORY = "not_a_repository"
    GIT_MISSING = "git_missing"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"


@dataclass
class SignaturePattern:
    """Pattern definition for recognizing a failure signature."""

    signature: FailureSignature
    indicators: list[str]  # Case-insensitive regexes searched in the message
    exception_types: tuple[type, ...] = ()
    error_codes: list[str] = field(default_factory=list)  # errno names or `code` values
    _compiled: list[re.Pattern] = field(init=False, repr=False)

    def __post_init__(self):
        self._compiled = [re.compile(p, re.IGNORECASE) for p in self.indicators]

    def matches(self, error: BaseException) -> bool:
        """Check whether the error carries this signature."""
        if self.exception_types and isinstance(error, self.exception_types):
            return True

        if self.error_codes and any(code in self.error_codes for code in _error_codes(error)):
            return True

        message = str(error)
        return any(pattern.search(message) for pattern in self._compiled)


def _error_codes(error: BaseException) -> list[str]:
    """Symbolic codes of an error: a Node-style `code` attribute and the errno name."""
    codes = []
    code = getattr(error, "code", None)
    if code is not None:
        codes.append(str(code))
    number = getattr(error, "errno", None)
    if isinstance(number, int) and number in errno.errorcode:
        codes.append(errno.errorcode[number])
    return codes


FILE_NOT_FOUND = SignaturePattern(
    signature=FailureSignature.FILE_NOT_FOUND,
    indicators=[r"\benoent\b", r"no such file", r"not found"],
    exception_types=(FileNotFoundError,),
    error_codes=["ENOENT"],
)

PERMISSION_DENIED = SignaturePattern(
    signature=FailureSignature.PERMISSION_DENIED,
    indicators=[
        r"permission denied",
        r"access denied",
        r"operation not permitted",
        r"\beacces\b",
        r"\beperm\b",
    ],
    exception_types=(PermissionError,),
    error_codes=["EACCES", "EPERM"],
)

NO_SPACE = SignaturePattern(
    signature=FailureSignature.NO_SPACE,
    indicators=[r"\benospc\b", r"no space left", r"disk full", r"disk quota"],
    error_codes=["ENOSPC", "EDQUOT"],
)

NOT_A_REPOSITORY = SignaturePattern(
    signature=FailureSignature.NOT_A_REPOSITORY,
    indicators=[r"not a git repository"],
)

GIT_MISSING = SignaturePattern(
    signature=FailureSignature.GIT_MISSING,
    indicators=[
        r"\bgit:? (command )?not found",
        r"spawn git enoent",
        r"no such file or directory: '?git'?$",
        r"'git' is not recognized",
    ],
)

TIMEOUT = SignaturePattern(
    signature=FailureSignature.TIMEOUT,
    indicators=[r"timeout", r"timed out", r"\betimedout\b", r"deadline exceeded"],
    exception_types=(TimeoutError, asyncio.TimeoutError),
    error_codes=["ETIMEDOUT"],
)

AUTHENTICATION = SignaturePattern(
    signature=FailureSignature.AUTHENTICATION,
    indicators=[
        r"api[ _-]?key",
        r"unauthori[sz]ed",
        r"authentication",
        r"invalid credential",
        r"forbidden",
        r"\b401\b",
        r"\b403\b",
    ],
)

RATE_LIMIT = SignaturePattern(
    signature=FailureSignature.RATE_LIMIT,
    indicators=[r"rate[ _-]?limit", r"too many requests", r"\b429\b", r"quota exceeded"],
)

NETWORK = SignaturePattern(
    signature=FailureSignature.NETWORK,
    indicators=[
        r"\bnetwork\b",
        r"connection (refused|reset|error|closed|aborted)",
        r"socket hang up",
        r"fetch failed",
        r"\beconnrefused\b",
        r"\beconnreset\b",
        r"\benotfound\b",
        r"\beai_again\b",
    ],
    exception_types=(ConnectionError,),
    error_codes=["ECONNREFUSED", "ECONNRESET", "ENOTFOUND", "EAI_AGAIN", "EHOSTUNREACH"],
)

# Signatures the retry gate refuses regardless of the remaining budget
NON_RETRYABLE_PATTERNS: list[SignaturePattern] = [PERMISSION_DENIED, FILE_NOT_FOUND]


# Host components with a fixed category
COMPONENT_CATEGORIES: dict[str, ErrorCategory] = {
    "SessionStorage": ErrorCategory.STORAGE,
    "GitActivityMonitor": ErrorCategory.GIT,
    "AISummaryService": ErrorCategory.AI_SERVICE,
    "TerminalErrorMonitor": ErrorCategory.TERMINAL,
    "SidebarPanelProvider": ErrorCategory.UI,
    "TeamDashboardProvider": ErrorCategory.UI,
}

# Message hints, checked in order; the first category with a hit wins
MESSAGE_CATEGORY_HINTS: list[tuple[ErrorCategory, list[re.Pattern]]] = [
    (ErrorCategory.UI, [re.compile(p, re.IGNORECASE) for p in (
        r"webview", r"\bpanel\b", r"\brender",
    )]),
    (ErrorCategory.GIT, [re.compile(p, re.IGNORECASE) for p in (
        r"\bgit\b",
    )]),
    (ErrorCategory.AI_SERVICE, [re.compile(p, re.IGNORECASE) for p in (
        r"\bopenai\b", r"api[ _-]?key", r"\bsummar(y|ize|ization)\b", r"rate[ _-]?limit",
    )]),
    (ErrorCategory.TERMINAL, [re.compile(p, re.IGNORECASE) for p in (
        r"\bterminal\b",
    )]),
    (ErrorCategory.STORAGE, [re.compile(p, re.IGNORECASE) for p in (
        r"\benoent\b", r"\beacces\b", r"\benospc\b", r"session (data|file|storage)",
    )]),
    (ErrorCategory.NETWORK, [re.compile(p, re.IGNORECASE) for p in (
        r"\bnetwork\b", r"\beconnrefused\b", r"\beconnreset\b", r"\benotfound\b", r"\bsocket\b",
    )]),
]
