"""DepositLens — Domain Errors."""

from typing import Sequence


class DepositLensError(Exception):
    """Base for all pipeline failures."""


class RawSchemaError(DepositLensError):
    """Raised when the raw file header does not match the seventeen raw columns."""

    def __init__(
        self,
        *,
        missing: Sequence[str] | None = None,
        unexpected: Sequence[str] | None = None,
        duplicates: Sequence[str] | None = None,
    ) -> None:
        details: list[str] = []
        if missing:
            details.append(f"Missing required columns: {', '.join(sorted(missing))}.")
        if unexpected:
            details.append(
                f"Unexpected columns present: {', '.join(sorted(unexpected))}."
            )
        if duplicates:
            details.append(f"Duplicate columns: {', '.join(sorted(duplicates))}.")

        message = "Raw header validation failed."
        if details:
            message = f"{message} {' '.join(details)}"
        super().__init__(message)
        self.missing = tuple(missing or ())
        self.unexpected = tuple(unexpected or ())
        self.duplicates = tuple(duplicates or ())


class RawRowError(DepositLensError):
    """Raised when a raw row holds a value that cannot be coerced."""

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number


class RawDataAlreadyLoadedError(DepositLensError):
    """Raised when loading into a staging table that already holds rows."""


class RawDataMissingError(DepositLensError):
    """Raised when normalization is requested but nothing has been loaded."""


class DerivedTablesNotEmptyError(DepositLensError):
    """Raised when rebuilding customers/campaigns/outcomes without a reset."""

    def __init__(self, counts: dict[str, int]) -> None:
        populated = ", ".join(f"{t}={n}" for t, n in counts.items() if n)
        super().__init__(
            f"Derived tables already populated ({populated}); "
            "reset them before re-running"
        )
        self.counts = counts
