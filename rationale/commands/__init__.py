"""
Commands -- Modular CLI command implementations with self-registration

Each command module:
1. Defines XxxCommand class (handler implementation)
2. Exports register_parser(subparsers) to configure its argparse
3. Exports handle(cli, args) to dispatch to handler methods

Adding a command means adding a module to COMMAND_MODULES.
"""

import importlib
from typing import Dict, Callable, Any

from .base import BaseCommand

# Command modules that participate in auto-registration
# Order determines help display order
COMMAND_MODULES = [
    # Setup
    'init_cmd',
    # Writing
    'record',
    # Reading
    'explain',
    'search',
    'list_cmd',
    'show',
    'status',
    # Maintenance
    'check',
    'merge_cmd',
    'hooks',
    'config_cmd',
]

# Handler registry: command_name -> handle function
_handlers: Dict[str, Callable] = {}


def register_all(subparsers) -> None:
    """
    Discover and register all command parsers.

    Imports each module in COMMAND_MODULES, calls its register_parser()
    and records its handle() for dispatch under COMMAND_NAME (derived from
    the module name when absent: 'init_cmd' -> 'init').
    """
    _handlers.clear()

    for module_name in COMMAND_MODULES:
        module = importlib.import_module(f'.{module_name}', __package__)

        if hasattr(module, 'register_parser'):
            module.register_parser(subparsers)

        if hasattr(module, 'handle'):
            cmd_name = getattr(module, 'COMMAND_NAME', None) or module_name.replace('_cmd', '')
            _handlers[cmd_name] = module.handle


def dispatch(command: str, cli: Any, args: Any) -> Any:
    """
    Dispatch command to its registered handler.

    Returns:
        Result from handler: an exit code, or None for success

    Raises:
        KeyError: If command not registered
    """
    if command not in _handlers:
        raise KeyError(f"Unknown command: {command}. Available: {list(_handlers.keys())}")

    return _handlers[command](cli, args)


def get_registered_commands() -> list:
    """Get list of registered command names."""
    return list(_handlers.keys())


__all__ = ['BaseCommand', 'register_all', 'dispatch', 'get_registered_commands']
