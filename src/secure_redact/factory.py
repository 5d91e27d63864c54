"""Factory for constructing a fully wired redaction session."""

from typing import Optional

from .detectors.vision_detector import DetectorConfig, VisionDetector
from .models.state import StateTracker
from .orchestrator import AnonymizationOrchestrator
from .rasterizers.pdf_rasterizer import DEFAULT_SCALE, PDFRasterizer
from .reconstructor import DocumentReconstructor
from .session import RedactionSession
from .writers.pdf_writer import PDFImageWriter


def build_session(
    # Provider selection
    provider: str = "openai",
    # OpenAI settings
    openai_api_key: str = "",
    openai_model: str = "gpt-4o",
    openai_temperature: float = -1.0,
    # Azure OpenAI settings
    azure_endpoint: str = "",
    api_key: str = "",
    deployment_name: str = "",
    api_version: str = "2024-02-15-preview",
    # Rendering and detection
    render_scale: float = DEFAULT_SCALE,
    image_format: str = "png",
    jpeg_quality: int = 90,
    detection_concurrency: int = 1,
    status_linger_seconds: float = 3.0,
    burn_in: bool = True,
    detector: Optional[VisionDetector] = None,
) -> RedactionSession:
    """Build a RedactionSession wired with the configured vision provider.

    Credentials are passed in explicitly; nothing here reads the environment.
    """
    if detector is None:
        # Resolve temperature: -1 means "omit" (use model default)
        temperature = openai_temperature if openai_temperature >= 0 else None
        if provider == "azure":
            config = DetectorConfig(
                provider="azure",
                api_key=api_key,
                model=deployment_name,
                azure_endpoint=azure_endpoint,
                api_version=api_version,
                temperature=temperature,
            )
        else:
            # Default to OpenAI
            config = DetectorConfig(
                provider="openai",
                api_key=openai_api_key,
                model=openai_model,
                temperature=temperature,
            )
        detector = VisionDetector(config=config)

    tracker = StateTracker(linger_seconds=status_linger_seconds)
    return RedactionSession(
        rasterizer=PDFRasterizer(
            scale=render_scale,
            image_format=image_format,
            jpeg_quality=jpeg_quality,
        ),
        orchestrator=AnonymizationOrchestrator(
            detector=detector,
            tracker=tracker,
            concurrency=detection_concurrency,
        ),
        reconstructor=DocumentReconstructor(
            writer=PDFImageWriter(burn_in=burn_in, jpeg_quality=jpeg_quality)
        ),
    )
