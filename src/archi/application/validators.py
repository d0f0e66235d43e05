"""
Archive validation pipeline.

Validators run against a candidate archive before it is persisted. The
pipeline always runs every validator in registration order and folds their
results with logical AND, so a caller sees every problem in one round trip.
"""

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Iterator, List, Optional, Union

from ..domain.entities.archive import Archive
from ..domain.entities.result import ArchiError, Result

if TYPE_CHECKING:
    from .services.archive_service import ArchiveApplicationService

ValidatorFunction = Callable[["ArchiveApplicationService", Archive], Awaitable[Result]]


class IArchiveValidator(ABC):
    """Abstract validator for archives."""

    @abstractmethod
    async def validate(self, manager: "ArchiveApplicationService", archive: Archive) -> Result:
        """
        Validate an archive.

        Args:
            manager: The archive service that is about to persist the archive
            archive: The candidate archive

        Returns:
            Result of the validation
        """
        pass


class FunctionValidator(IArchiveValidator):
    """Adapts a coroutine function ``(manager, archive) -> Result`` to a validator."""

    def __init__(self, func: ValidatorFunction):
        if not inspect.iscoroutinefunction(func):
            raise TypeError("Validator functions must be coroutine functions")
        self._func = func

    async def validate(self, manager: "ArchiveApplicationService", archive: Archive) -> Result:
        return await self._func(manager, archive)

    def __repr__(self) -> str:
        return f"FunctionValidator({getattr(self._func, '__qualname__', self._func)!r})"


class ValidationPipeline:
    """Ordered collection of validators, always traversed completely."""

    def __init__(self, validators: Optional[Iterable[Union[IArchiveValidator, ValidatorFunction]]] = None):
        self._validators: List[IArchiveValidator] = []
        for validator in validators or ():
            self.add(validator)

    def add(self, validator: Union[IArchiveValidator, ValidatorFunction]) -> None:
        """Append a validator or a validator coroutine function."""
        if isinstance(validator, IArchiveValidator):
            self._validators.append(validator)
        elif callable(validator):
            self._validators.append(FunctionValidator(validator))
        else:
            raise TypeError(f"Not a validator: {validator!r}")

    async def validate(self, manager: "ArchiveApplicationService", archive: Archive) -> Result:
        result = Result.success()
        for validator in self._validators:
            result = result & await validator.validate(manager, archive)
        return result

    def __iter__(self) -> Iterator[IArchiveValidator]:
        return iter(self._validators)

    def __len__(self) -> int:
        return len(self._validators)


class DescriptionLengthValidator(IArchiveValidator):
    """Rejects archives whose description is longer than ``max_length`` characters."""

    CODE = "DescriptionTooLong"

    def __init__(self, max_length: int):
        if not isinstance(max_length, int) or max_length < 0:
            raise ValueError("max_length must be a non-negative integer")
        self.max_length = max_length

    async def validate(self, manager: "ArchiveApplicationService", archive: Archive) -> Result:
        if archive.description is not None and len(archive.description) > self.max_length:
            return Result.failed(ArchiError(
                code=self.CODE,
                description=f"Description must not exceed {self.max_length} characters.",
            ))
        return Result.success()


class MaxFilesValidator(IArchiveValidator):
    """Rejects archives with more than ``max_files`` file associations."""

    CODE = "TooManyFiles"

    def __init__(self, max_files: int):
        if not isinstance(max_files, int) or max_files < 0:
            raise ValueError("max_files must be a non-negative integer")
        self.max_files = max_files

    async def validate(self, manager: "ArchiveApplicationService", archive: Archive) -> Result:
        if len(archive.files) > self.max_files:
            return Result.failed(ArchiError(
                code=self.CODE,
                description=f"An archive may hold at most {self.max_files} files.",
            ))
        return Result.success()
