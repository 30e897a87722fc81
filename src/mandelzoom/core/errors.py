"""Exception hierarchy for rendering and output."""


class MandelzoomError(Exception):
    """Base class for all renderer errors."""


class InvalidSettings(MandelzoomError, ValueError):
    """Frame settings violate an invariant (raised before any work is dispatched)."""


class RenderTaskFailure(MandelzoomError):
    """A row or pixel task failed; the whole frame is discarded.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, unit: str, output_id: str | None = None):
        self.unit = unit
        self.output_id = output_id
        where = f" of {output_id}" if output_id else ""
        super().__init__(f"render task failed for {unit}{where}")


class SinkError(MandelzoomError):
    """An output sink could not encode or persist a frame."""
