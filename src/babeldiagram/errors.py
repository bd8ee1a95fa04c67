"""
Error taxonomy for the diagram engine.

Three families:
    - ParseError: raised by the parser, the whole document is rejected
    - MutationError: raised by the session, the live tree is untouched
    - ItemNotFoundError: an id that should exist does not (programming error)

Tree invariants are checked in one place (validation.py) and reported as
DiagramValidationError carrying a ViolationKind. The parser and the session
translate that into their own public kinds.
"""

from enum import Enum
from typing import Optional


class ViolationKind(Enum):
    """Tree invariant violations detected by validation."""
    DUPLICATE_ID = "duplicate_id"
    MISSING_ID = "missing_id"
    INVALID_ID = "invalid_id"
    MISSING_TITLE = "missing_title"
    INVALID_TITLE = "invalid_title"
    UNEXPECTED_TITLE = "unexpected_title"
    INSTANCE_ON_ROOT = "instance_on_root"
    DANGLING_INSTANCE = "dangling_instance"
    INVALID_INSTANCE_TARGET = "invalid_instance_target"
    NESTING_DEPTH = "nesting_depth"
    MISPLACED_KIND = "misplaced_kind"
    DANGLING_LINK = "dangling_link"
    CROSS_MAP_LINK = "cross_map_link"


class ParseErrorKind(Enum):
    MALFORMED_MARKUP = "MalformedMarkup"
    DUPLICATE_ID = "DuplicateId"
    MISSING_REQUIRED_ATTRIBUTE = "MissingRequiredAttribute"
    UNEXPECTED_ATTRIBUTE = "UnexpectedAttribute"
    INVALID_NESTING = "InvalidNesting"
    DANGLING_REFERENCE = "DanglingReference"


class MutationErrorKind(Enum):
    NESTING_DEPTH_EXCEEDED = "NestingDepthExceeded"
    DUPLICATE_ID = "DuplicateId"
    DANGLING_LINK_TARGET = "DanglingLinkTarget"
    CROSS_MAP_LINK = "CrossMapLink"
    UNKNOWN_ITEM = "UnknownItem"
    INVALID_PLACEMENT = "InvalidPlacement"
    INVALID_ITEM = "InvalidItem"


class DiagramError(Exception):
    """Base class for structured engine errors with a stable kind."""

    def __init__(self, kind: Enum, message: str, item_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.item_id = item_id

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class DiagramValidationError(DiagramError):
    """A tree invariant does not hold."""


class ParseError(DiagramError):
    """The document was rejected. No partial tree is produced."""


class MutationError(DiagramError):
    """A mutation was rejected before reaching the tree."""


class ItemNotFoundError(KeyError):
    """Raised when an id is not present in a registry."""

    def __init__(self, item_id: str) -> None:
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Item not found: {self.item_id!r}"


PARSE_KIND_BY_VIOLATION = {
    ViolationKind.DUPLICATE_ID: ParseErrorKind.DUPLICATE_ID,
    ViolationKind.MISSING_ID: ParseErrorKind.MISSING_REQUIRED_ATTRIBUTE,
    ViolationKind.INVALID_ID: ParseErrorKind.MISSING_REQUIRED_ATTRIBUTE,
    ViolationKind.MISSING_TITLE: ParseErrorKind.MISSING_REQUIRED_ATTRIBUTE,
    ViolationKind.INVALID_TITLE: ParseErrorKind.MISSING_REQUIRED_ATTRIBUTE,
    ViolationKind.UNEXPECTED_TITLE: ParseErrorKind.UNEXPECTED_ATTRIBUTE,
    ViolationKind.INSTANCE_ON_ROOT: ParseErrorKind.UNEXPECTED_ATTRIBUTE,
    ViolationKind.DANGLING_INSTANCE: ParseErrorKind.DANGLING_REFERENCE,
    ViolationKind.INVALID_INSTANCE_TARGET: ParseErrorKind.DANGLING_REFERENCE,
    ViolationKind.NESTING_DEPTH: ParseErrorKind.INVALID_NESTING,
    ViolationKind.MISPLACED_KIND: ParseErrorKind.INVALID_NESTING,
    ViolationKind.DANGLING_LINK: ParseErrorKind.DANGLING_REFERENCE,
    ViolationKind.CROSS_MAP_LINK: ParseErrorKind.DANGLING_REFERENCE,
}

MUTATION_KIND_BY_VIOLATION = {
    ViolationKind.DUPLICATE_ID: MutationErrorKind.DUPLICATE_ID,
    ViolationKind.MISSING_ID: MutationErrorKind.INVALID_ITEM,
    ViolationKind.INVALID_ID: MutationErrorKind.INVALID_ITEM,
    ViolationKind.MISSING_TITLE: MutationErrorKind.INVALID_ITEM,
    ViolationKind.INVALID_TITLE: MutationErrorKind.INVALID_ITEM,
    ViolationKind.UNEXPECTED_TITLE: MutationErrorKind.INVALID_ITEM,
    ViolationKind.INSTANCE_ON_ROOT: MutationErrorKind.INVALID_ITEM,
    ViolationKind.DANGLING_INSTANCE: MutationErrorKind.INVALID_ITEM,
    ViolationKind.INVALID_INSTANCE_TARGET: MutationErrorKind.INVALID_ITEM,
    ViolationKind.NESTING_DEPTH: MutationErrorKind.NESTING_DEPTH_EXCEEDED,
    ViolationKind.MISPLACED_KIND: MutationErrorKind.INVALID_PLACEMENT,
    ViolationKind.DANGLING_LINK: MutationErrorKind.DANGLING_LINK_TARGET,
    ViolationKind.CROSS_MAP_LINK: MutationErrorKind.CROSS_MAP_LINK,
}


def as_parse_error(error: DiagramValidationError) -> ParseError:
    return ParseError(PARSE_KIND_BY_VIOLATION[error.kind], error.message, item_id=error.item_id)


def as_mutation_error(error: DiagramValidationError) -> MutationError:
    return MutationError(MUTATION_KIND_BY_VIOLATION[error.kind], error.message, item_id=error.item_id)
