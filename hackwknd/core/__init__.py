"""
HackWknd Core
=============

Core utilities and shared functionality for HackWknd modules.
"""

from .config import Config, get_config_value
from .database import Database
from .logging_service import LoggingService, logger, db_log

__all__ = ['Config', 'get_config_value', 'Database', 'LoggingService', 'logger', 'db_log']
