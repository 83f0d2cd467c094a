"""
Error Taxonomy

Every failure inside the generator is fatal for the run: errors propagate
to the caller, which is responsible for reporting and exit codes.
"""


class SynthError(Exception):
    """Base class for all generator errors"""


class ConfigurationError(SynthError, ValueError):
    """Unknown scale profile or malformed static table"""


class InvariantViolation(SynthError, ValueError):
    """A sampled or derived value broke a data-model invariant"""


class PipelineError(SynthError, RuntimeError):
    """Stage graph is inconsistent or a stage read data it did not declare"""
