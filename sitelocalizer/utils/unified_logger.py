"""
Unified logging system for sitelocalizer
Provides consistent run output for the CLI and structured entries for callbacks
"""
import sys
import os
from datetime import datetime
from typing import Optional, Dict, Any, Callable
from enum import Enum

from sitelocalizer.config import DEBUG_MODE
from sitelocalizer.core.events import Event, EventType


class LogLevel(Enum):
    """Log levels with priority values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(Enum):
    """Types of log messages for special handling"""
    GENERAL = "general"
    PROGRESS = "progress"
    RUN_START = "run_start"
    RUN_END = "run_end"
    LOCALE_COMPLETE = "locale_complete"
    LOCALE_ERROR = "locale_error"
    ERROR_DETAIL = "error_detail"


class Colors:
    """ANSI color codes for terminal output"""
    # Check if colors should be disabled
    NO_COLOR = os.environ.get('NO_COLOR') is not None or not sys.stdout.isatty()

    YELLOW = '' if NO_COLOR else '\033[93m'       # headers
    WHITE = '' if NO_COLOR else '\033[97m'        # main text
    GRAY = '' if NO_COLOR else '\033[90m'         # technical details
    GREEN = '' if NO_COLOR else '\033[92m'        # completed locales
    RED = '' if NO_COLOR else '\033[91m'          # errors
    ENDC = '' if NO_COLOR else '\033[0m'          # reset

    @classmethod
    def disable(cls):
        """Disable all colors"""
        cls.YELLOW = cls.WHITE = cls.GRAY = cls.GREEN = cls.RED = cls.ENDC = ''


class UnifiedLogger:
    """
    Unified logger that provides consistent logging across all interfaces
    """

    def __init__(self,
                 name: str = "sitelocalizer",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 web_callback: Optional[Callable] = None):
        """
        Initialize the unified logger

        Args:
            name: Logger name/identifier
            console_output: Whether to output to console
            enable_colors: Whether to use colored output
            min_level: Minimum log level to display
            web_callback: Receives every structured log entry (web interface)
        """
        self.name = name
        self.console_output = console_output
        self.enable_colors = enable_colors
        self.min_level = min_level
        self.web_callback = web_callback

        self.run_state = {
            'root': '',
            'locales': 0,
            'start_time': None,
        }

        if not enable_colors:
            Colors.disable()

    def _format_timestamp(self) -> str:
        """Format current timestamp"""
        return datetime.now().strftime("%H:%M:%S")

    def _format_console_message(self, level: LogLevel, message: str,
                                log_type: LogType = LogType.GENERAL,
                                data: Optional[Dict[str, Any]] = None) -> str:
        """Format message for console output"""
        timestamp = self._format_timestamp()
        data = data or {}

        level_colors = {
            LogLevel.DEBUG: Colors.GRAY,
            LogLevel.INFO: Colors.WHITE,
            LogLevel.WARNING: Colors.YELLOW,
            LogLevel.ERROR: Colors.RED,
            LogLevel.CRITICAL: Colors.RED
        }
        color = level_colors.get(level, Colors.WHITE)

        if log_type == LogType.RUN_START:
            return self._format_run_start(message, data)
        elif log_type == LogType.RUN_END:
            return self._format_run_end(data)
        elif log_type == LogType.PROGRESS:
            locale = f"[{data['locale']}] " if data.get('locale') else ""
            return f"{Colors.GRAY}[{timestamp}]{Colors.ENDC} {Colors.WHITE}{locale}{message}{Colors.ENDC}"
        elif log_type == LogType.LOCALE_COMPLETE:
            return (f"{Colors.GREEN}[{timestamp}] {data.get('locale', '')} done: "
                    f"{data.get('nodesUpdated', 0)} nodes updated, "
                    f"{data.get('fieldsTranslated', 0)} fields translated{Colors.ENDC}")
        elif log_type in (LogType.LOCALE_ERROR, LogType.ERROR_DETAIL):
            return self._format_error_detail(message, data)
        else:
            level_str = f"[{level.name}]" if level != LogLevel.INFO else ""
            return f"{color}[{timestamp}] {level_str} {message}{Colors.ENDC}"

    def _format_run_start(self, message: str, data: Dict[str, Any]) -> str:
        self.run_state.update({
            'root': data.get('root', ''),
            'locales': data.get('locales', 0),
            'start_time': datetime.now(),
        })
        output = [f"{Colors.YELLOW}{'=' * 80}{Colors.ENDC}",
                  f"{Colors.YELLOW}{message}{Colors.ENDC}"]
        if self.run_state['root']:
            output.append(f"{Colors.WHITE}Root: {self.run_state['root']}{Colors.ENDC}")
        if data.get('model'):
            output.append(f"{Colors.GRAY}Model: {data['model']}{Colors.ENDC}")
        return '\n'.join(output)

    def _format_run_end(self, data: Dict[str, Any]) -> str:
        """Format the run summary"""
        output = [f"\n{Colors.WHITE}LOCALIZATION COMPLETE{Colors.ENDC}"]

        if self.run_state['start_time']:
            duration = datetime.now() - self.run_state['start_time']
            output.append(f"{Colors.GRAY}Duration: {duration}{Colors.ENDC}")

        completed = data.get('completedLocales') or []
        failed = data.get('failedLocales') or []
        output.append(f"{Colors.WHITE}Nodes touched: {data.get('nodesTouched', 0)}{Colors.ENDC}")
        output.append(f"{Colors.GREEN}Completed locales: {', '.join(completed) or '-'}{Colors.ENDC}")
        for failure in failed:
            output.append(f"{Colors.RED}Failed: {failure.get('locale')}: {failure.get('error')}{Colors.ENDC}")
        output.append(f"{Colors.GRAY}API calls: {data.get('apiCallCount', 0)}{Colors.ENDC}")
        return '\n'.join(output)

    def _format_error_detail(self, message: str, data: Dict[str, Any]) -> str:
        """Format detailed error message"""
        timestamp = self._format_timestamp()
        output = [f"{Colors.RED}[{timestamp}] ERROR: {message}{Colors.ENDC}"]
        if data.get('locale'):
            output.append(f"{Colors.RED}Locale: {data['locale']}{Colors.ENDC}")
        if data.get('details'):
            output.append(f"{Colors.RED}Details: {data['details']}{Colors.ENDC}")
        return '\n'.join(output)

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        """
        Main logging method

        Args:
            level: Log level
            message: Log message
            log_type: Type of log for special formatting
            data: Additional data for the log entry
        """
        if level.value < self.min_level.value:
            return

        if self.console_output:
            try:
                console_msg = self._format_console_message(level, message, log_type, data)
                if console_msg:
                    print(console_msg, flush=True)
            except UnicodeEncodeError:
                # Consoles with a narrow codepage (cp1252)
                safe_message = message.encode('ascii', 'replace').decode('ascii')
                print(f"[{self._format_timestamp()}] {safe_message}", flush=True)

        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'level': level.name,
            'type': log_type.value,
            'message': message,
            'data': data or {}
        }

        if self.web_callback:
            self.web_callback(log_entry)

    # Convenience methods
    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def critical(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.CRITICAL, message, log_type, data)

    def create_event_listener(self) -> Callable[[Event], None]:
        """
        Create an EventBus listener rendering run events through this logger.

        Returns:
            Callback suitable for EventBus.subscribe_all
        """
        def listener(event: Event):
            data = event.data
            if event.type == EventType.PROGRESS:
                self.info(data.get('message', ''), LogType.PROGRESS, data)
            elif event.type == EventType.LOCALE_STARTED:
                self.debug(f"Starting {data.get('locale')}", data=data)
            elif event.type == EventType.LOCALE_COMPLETE:
                self.info(f"{data.get('locale')} completed", LogType.LOCALE_COMPLETE, data)
            elif event.type == EventType.LOCALE_ERROR:
                self.error(data.get('error', ''), LogType.LOCALE_ERROR, data)
            elif event.type == EventType.COMPLETE:
                self.info("Localization complete", LogType.RUN_END, data)
            elif event.type == EventType.ERROR:
                self.error(data.get('error', ''), LogType.ERROR_DETAIL, data)

        return listener


# Global logger instance
_global_logger = None


def get_logger(name: str = "sitelocalizer", **kwargs) -> UnifiedLogger:
    """
    Get or create the global logger instance

    Args:
        name: Logger name
        **kwargs: Additional arguments for UnifiedLogger

    Returns:
        UnifiedLogger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = UnifiedLogger(name, **kwargs)
    return _global_logger


def setup_cli_logger(enable_colors: bool = True) -> UnifiedLogger:
    """Setup logger for CLI usage"""
    return get_logger(
        console_output=True,
        enable_colors=enable_colors,
        min_level=LogLevel.DEBUG if DEBUG_MODE else LogLevel.INFO
    )

