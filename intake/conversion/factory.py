import random

from intake.clock import Clock
from intake.config.settings import Settings
from intake.conversion.backends.base import ConversionBackend
from intake.conversion.backends.document import DocumentConversionBackend
from intake.conversion.backends.simulated import SimulatedConversionBackend
from intake.pdf.factory import PdfExtractorFactory


class ConversionBackendFactory:
    """Creates the conversion engine selected by ``settings.conversion_backend``."""

    BACKENDS: tuple[str, ...] = ("simulated", "document")

    @classmethod
    def create(cls, settings: Settings, clock: Clock | None = None) -> ConversionBackend:
        name = settings.conversion_backend.lower()
        if name == "simulated":
            return SimulatedConversionBackend(
                rng=random.Random(settings.simulation_seed),
                clock=clock,
            )
        if name == "document":
            return DocumentConversionBackend(PdfExtractorFactory.create(settings.pdf_engine))
        raise ValueError(
            f"Unknown conversion backend '{name}'. Choose from: {list(cls.BACKENDS)}"
        )
