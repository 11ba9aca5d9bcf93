import logging
import os
import signal
from functools import lru_cache
from typing import Any, Dict

from .config import Settings
from .core.cancellation import CancellationContext
from .core.domain_objects import IntakeConfiguration
from .services.barcode.code_extractor import CodeExtractor
from .services.intake.intake_dispatcher import IntakeDispatcher
from .services.intake.intake_processor import IntakeProcessor
from .services.intake_service import IntakeService
from .services.stability.stability_detector import StabilityDetector
from .services.tracking.intake_statistics import IntakeStatistics
from .services.watcher.watch_loop import WatchLoop

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_intake_config() -> IntakeConfiguration:
    if "intake_config" not in _singletons:
        _singletons["intake_config"] = get_settings().to_intake_config()
    return _singletons["intake_config"]


def get_cancellation_context() -> CancellationContext:
    if "cancellation" not in _singletons:
        _singletons["cancellation"] = CancellationContext()
    return _singletons["cancellation"]


def get_statistics() -> IntakeStatistics:
    if "statistics" not in _singletons:
        _singletons["statistics"] = IntakeStatistics()
    return _singletons["statistics"]


def get_code_extractor() -> CodeExtractor:
    if "code_extractor" not in _singletons:
        # Imported here so the PDF/OpenCV stack is only loaded by the running service
        from .services.barcode.opencv_identifier import OpenCvBarcodeIdentifier
        from .services.barcode.pdf_renderer import PdfPageRenderer

        _singletons["code_extractor"] = CodeExtractor(
            renderer=PdfPageRenderer(),
            identifier=OpenCvBarcodeIdentifier(),
            dpi=get_intake_config().render_dpi,
        )
    return _singletons["code_extractor"]


def get_intake_processor() -> IntakeProcessor:
    if "intake_processor" not in _singletons:
        config = get_intake_config()
        _singletons["intake_processor"] = IntakeProcessor(
            config=config,
            stability_detector=StabilityDetector(config.stability),
            code_extractor=get_code_extractor(),
        )
    return _singletons["intake_processor"]


def get_dispatcher() -> IntakeDispatcher:
    if "dispatcher" not in _singletons:
        _singletons["dispatcher"] = IntakeDispatcher(
            config=get_intake_config(),
            processor=get_intake_processor(),
            statistics=get_statistics(),
        )
    return _singletons["dispatcher"]


def get_watch_loop() -> WatchLoop:
    if "watch_loop" not in _singletons:
        _singletons["watch_loop"] = WatchLoop(
            config=get_intake_config(),
            dispatcher=get_dispatcher(),
            cancellation=get_cancellation_context(),
        )
    return _singletons["watch_loop"]


def request_process_exit(error: BaseException) -> None:
    """Ask the server to shut down so a supervisor can restart the service."""
    logging.critical(f"Requesting process exit after systemic error: {error}")
    os.kill(os.getpid(), signal.SIGTERM)


def get_intake_service() -> IntakeService:
    if "intake_service" not in _singletons:
        _singletons["intake_service"] = IntakeService(
            config=get_intake_config(),
            dispatcher=get_dispatcher(),
            watch_loop=get_watch_loop(),
            cancellation=get_cancellation_context(),
            on_fatal=request_process_exit,
        )
    return _singletons["intake_service"]


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    _singletons.clear()
    get_settings.cache_clear()
