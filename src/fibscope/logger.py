"""
Logging infrastructure for the fibscope pattern engine.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""
    
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'
    
    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class StructuredFormatter(logging.Formatter):
    """Structured formatter for file output."""
    
    def format(self, record: logging.LogRecord) -> str:
        # Analysis context travels on the record as extra fields
        prefix = ""
        if hasattr(record, 'fingerprint'):
            prefix += f"[{str(record.fingerprint)[:12]}] "
        if hasattr(record, 'pattern_kind'):
            prefix += f"[{record.pattern_kind}] "
        
        message = super().format(record)
        return prefix + message if prefix else message


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_size: str = "10MB",
    backup_count: int = 5,
    console_output: bool = True
) -> logging.Logger:
    """
    Set up a logger with file rotation and optional console output.
    
    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_size: Maximum log file size before rotation
        backup_count: Number of backup files to keep
        console_output: Whether to output to console
    
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    
    # Clear existing handlers
    logger.handlers.clear()
    
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)
    
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        
        console_format = ColoredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        console_handler.setFormatter(console_format)
        logger.addHandler(console_handler)
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        size_bytes = _parse_size(max_size)
        
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=size_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        
        file_format = StructuredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)
    
    # Prevent propagation to root logger
    logger.propagate = False
    
    return logger


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with default configuration.
    
    The level and log file default to FIBSCOPE_LOG_LEVEL and
    FIBSCOPE_LOG_FILE. Without a log file only console output is set up.
    
    Args:
        name: Logger name
        level: Logging level
    
    Returns:
        Logger instance
    """
    return setup_logger(
        name=name,
        level=level or os.getenv("FIBSCOPE_LOG_LEVEL", "WARNING"),
        log_file=os.getenv("FIBSCOPE_LOG_FILE"),
        console_output=True
    )


def set_level(level: str) -> None:
    """Change the level of every fibscope logger already created."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not name.startswith("fibscope") or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(log_level)
        for handler in logger.handlers:
            handler.setLevel(log_level)


def _parse_size(size_str: str) -> int:
    """
    Parse size string (e.g., '10MB', '1GB') to bytes.
    
    Args:
        size_str: Size string with unit
    
    Returns:
        Size in bytes
    """
    size_str = size_str.upper().strip()
    
    # Longest suffix first so 'MB' is not read as 'B'
    size_map = {
        'GB': 1024 * 1024 * 1024,
        'MB': 1024 * 1024,
        'KB': 1024,
        'B': 1,
    }
    
    for unit, multiplier in size_map.items():
        if size_str.endswith(unit):
            number = size_str[:-len(unit)].strip()
            try:
                return int(float(number) * multiplier)
            except ValueError:
                pass
    
    try:
        return int(size_str)
    except ValueError:
        return 10 * 1024 * 1024  # Default 10MB


class AnalysisLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter carrying the fingerprint of the analysis in progress."""
    
    def process(self, msg: str, kwargs: dict) -> tuple:
        extra = dict(self.extra)
        extra.update(kwargs.get('extra', {}))
        kwargs['extra'] = extra
        return msg, kwargs


def get_analysis_adapter(
    logger: logging.Logger,
    fingerprint: Optional[str] = None
) -> AnalysisLoggerAdapter:
    """
    Wrap a logger with analysis context.
    
    Args:
        logger: Logger to wrap
        fingerprint: Fingerprint of the input window being analyzed
    
    Returns:
        Logger adapter with analysis context
    """
    extra = {}
    if fingerprint:
        extra['fingerprint'] = fingerprint
    return AnalysisLoggerAdapter(logger, extra)
