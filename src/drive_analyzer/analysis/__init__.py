"""Source aggregation, prompt composition and the analysis pipeline."""

from drive_analyzer.analysis.notify import LoggingNotifier, Notifier
from drive_analyzer.analysis.pipeline import AnalysisPipeline, SourceBundle, default_title
from drive_analyzer.analysis.prompt import DOC_SEPARATOR, combine_contents, compose_prompt
from drive_analyzer.analysis.status import ProcessingStatus
from drive_analyzer.analysis.webhook import send_to_webhook

__all__ = [
    "AnalysisPipeline",
    "DOC_SEPARATOR",
    "LoggingNotifier",
    "Notifier",
    "ProcessingStatus",
    "SourceBundle",
    "combine_contents",
    "compose_prompt",
    "default_title",
    "send_to_webhook",
]
