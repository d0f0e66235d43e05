"""
Unit tests for the validation pipeline and stock validators.
"""

import pytest

from archi.application.validators import (
    DescriptionLengthValidator,
    FunctionValidator,
    IArchiveValidator,
    MaxFilesValidator,
    ValidationPipeline,
)
from archi.domain.entities.archive import Archive
from archi.domain.entities.file import FileDescriptor
from archi.domain.entities.result import ArchiError, Result


class RecordingValidator(IArchiveValidator):
    def __init__(self, calls, code=None):
        self.calls = calls
        self.code = code

    async def validate(self, manager, archive):
        self.calls.append(self.code)
        if self.code is None:
            return Result.success()
        return Result.failed(ArchiError(code=self.code, description=self.code))


@pytest.mark.asyncio
class TestValidationPipeline:
    """Test that the pipeline runs every validator."""

    async def test_empty_pipeline_succeeds(self):
        assert (await ValidationPipeline().validate(None, Archive())).succeeded

    async def test_no_short_circuit(self):
        """Test that validators after a failure still run and contribute errors."""
        calls = []
        pipeline = ValidationPipeline([
            RecordingValidator(calls, "E1"),
            RecordingValidator(calls),
            RecordingValidator(calls, "E2"),
        ])

        result = await pipeline.validate(None, Archive())

        assert calls == ["E1", None, "E2"]
        assert result.error_codes == ("E1", "E2")

    async def test_coroutine_functions_accepted(self):
        async def check(manager, archive):
            return Result.success()

        pipeline = ValidationPipeline([check])

        assert len(pipeline) == 1
        assert isinstance(list(pipeline)[0], FunctionValidator)
        assert (await pipeline.validate(None, Archive())).succeeded

    async def test_plain_functions_rejected(self):
        with pytest.raises(TypeError):
            ValidationPipeline([lambda manager, archive: Result.success()])

    async def test_non_callables_rejected(self):
        with pytest.raises(TypeError):
            ValidationPipeline(["not a validator"])


@pytest.mark.asyncio
class TestStockValidators:
    """Test the bundled validators."""

    async def test_description_length(self):
        validator = DescriptionLengthValidator(5)

        assert (await validator.validate(None, Archive(description="short"))).succeeded
        assert (await validator.validate(None, Archive())).succeeded
        result = await validator.validate(None, Archive(description="too long"))
        assert result.error_codes == (DescriptionLengthValidator.CODE,)

    async def test_max_files(self):
        validator = MaxFilesValidator(1)
        archive = Archive()
        archive.add_file(FileDescriptor(file_name="a.nc"))

        assert (await validator.validate(None, archive)).succeeded
        archive.add_file(FileDescriptor(file_name="b.nc"))
        assert (await validator.validate(None, archive)).error_codes == (MaxFilesValidator.CODE,)

    @pytest.mark.parametrize("limit", [-1, 1.5])
    async def test_invalid_limits(self, limit):
        with pytest.raises(ValueError):
            MaxFilesValidator(limit)
        with pytest.raises(ValueError):
            DescriptionLengthValidator(limit)
