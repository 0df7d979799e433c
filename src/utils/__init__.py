"""
Utility modules for the bond chatbot
"""
from .config_loader import AppConfig, load_app_config

__all__ = [
    'AppConfig',
    'load_app_config',
]
