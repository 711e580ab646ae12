"""
Exception types for picsort.

Only configuration errors and a failure to create the output root stop a
run. Everything else is recorded against the offending file and the run
carries on.
"""


class PicsortError(Exception):
    """Base class for all picsort errors."""


class ConfigurationError(PicsortError):
    """Run configuration is invalid (missing or non-existent root, bad option)."""


class ProvisioningError(PicsortError):
    """A required output folder could not be created."""


class DestinationExistsError(PicsortError):
    """A relocation target already exists and the conflict policy forbids replacing it."""


class PipelineStateError(PicsortError):
    """The coordinator was asked to make a transition its state machine does not allow."""
