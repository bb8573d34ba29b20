from reqstats.monitoring.collector import Collector, status_key
from reqstats.monitoring.recorder import Recorder
from reqstats.monitoring.report import Report, format_duration

__all__ = ["Collector", "Recorder", "Report", "format_duration", "status_key"]
