class ComposeError(Exception):
    """Base class for failures of a compose call. No output is produced when one is raised."""


class DecodeError(ComposeError):
    """Source bytes are not a valid or supported raster image."""


class FontLoadError(ComposeError):
    """Typeface bytes could not be loaded as a scalable outline font."""


class GeometryError(ComposeError):
    """Canvas configuration is degenerate for the given source image."""


class EncodeError(ComposeError):
    """The finished canvas could not be serialized."""
