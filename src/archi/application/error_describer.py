"""
Catalog of application-facing archive errors.

Every business error the archive service returns is built here, so codes
stay stable and descriptions can be localized in one place: pass a message
table to ``ErrorDescriber`` (or subclass it and override ``MESSAGES``).
Message templates are formatted with ``str.format``.
"""

from typing import Dict, Mapping, Optional

from ..domain.entities.result import ArchiError

TAG_MUST_NOT_BE_NULL_OR_EMPTY = "TagMustNotBeNullOrEmpty"
TAG_ALREADY_EXIST = "TagAlreadyExist"
TAG_DOES_NOT_EXIST = "TagDoesNotExist"
TAG_INVALID = "TagInvalid"
FAILED_TO_CREATE_FILE = "FailedToCreateFile"
FAILED_TO_REMOVE_FILE = "FailedToRemoveFile"


class ErrorDescriber:
    """Builds ``ArchiError`` instances for the fixed set of archive error kinds."""

    MESSAGES: Dict[str, str] = {
        TAG_MUST_NOT_BE_NULL_OR_EMPTY: "Tag must not be null or empty.",
        TAG_ALREADY_EXIST: "Tag '{tag}' is already associated with the archive.",
        TAG_DOES_NOT_EXIST: "Tag '{tag}' is not associated with the archive.",
        TAG_INVALID: "Tag '{tag}' contains characters that are not allowed.",
        FAILED_TO_CREATE_FILE: "Failed to create file '{file_name}'.",
        FAILED_TO_REMOVE_FILE: "Failed to remove file '{file_name}'.",
    }

    def __init__(self, messages: Optional[Mapping[str, str]] = None):
        """
        Args:
            messages: Optional overrides of the message templates, keyed by error code
        """
        self._messages = dict(self.MESSAGES)
        if messages:
            unknown = set(messages) - set(self.MESSAGES)
            if unknown:
                raise ValueError(f"Unknown error codes: {', '.join(sorted(unknown))}")
            self._messages.update(messages)

    def describe(self, code: str, **params) -> ArchiError:
        return ArchiError(code=code, description=self._messages[code].format(**params))

    def tag_must_not_be_null_or_empty(self) -> ArchiError:
        return self.describe(TAG_MUST_NOT_BE_NULL_OR_EMPTY)

    def tag_already_exist(self, tag: str) -> ArchiError:
        return self.describe(TAG_ALREADY_EXIST, tag=tag)

    def tag_does_not_exist(self, tag: str) -> ArchiError:
        return self.describe(TAG_DOES_NOT_EXIST, tag=tag)

    def tag_invalid(self, tag: str) -> ArchiError:
        return self.describe(TAG_INVALID, tag=tag)

    def failed_to_create_file(self, file_name: str) -> ArchiError:
        return self.describe(FAILED_TO_CREATE_FILE, file_name=file_name)

    def failed_to_remove_file(self, file_name: str) -> ArchiError:
        return self.describe(FAILED_TO_REMOVE_FILE, file_name=file_name)
