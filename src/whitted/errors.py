"""Error types raised while assembling a scene."""


class ConfigurationError(ValueError):
    """Raised when a scene, camera, material or transform is invalid.

    Raised during assembly, never during rendering. The message names the
    offending element (shape index, transform operation, material key).
    """
