"""Exception types raised by the pedigree layout engine."""


class PedigreeError(Exception):
    """Base class for all pedigree engine errors."""


class PedigreeValidationError(PedigreeError, ValueError):
    """The dataset is invalid and no tree must be built from it."""


class TreeStructureError(PedigreeError, RuntimeError):
    """The built hierarchy breaks an invariant (a builder bug)."""


class DeletionError(PedigreeError):
    """Deleting a person would leave an invalid dataset."""
