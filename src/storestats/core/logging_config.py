import logging
import sys


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger("storestats")
app_logger.setLevel(logging.INFO)

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)

# --- Namespace-based Filter (Optional) ---
# To only see records from the reporting engine, for example:
#
# console_handler.addFilter(NamespaceFilter(["storestats.features.reports"]))
#
# An empty list lets every record through.
app_logger.addHandler(console_handler)

# Report cache hits log at DEBUG; set this to logging.DEBUG to trace them.
logging.getLogger("storestats.features.reports").setLevel(logging.INFO)

# Modules use logging.getLogger(__name__), which yields loggers such as
# "storestats.features.reports.service". They inherit levels from
# "storestats.features.reports" or from the package logger "storestats".
