from .telegram import TelegramNotifier, build_report, chunk_text, format_timestamp

__all__ = ["TelegramNotifier", "build_report", "chunk_text", "format_timestamp"]
