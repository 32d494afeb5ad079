"""UPG bridge generator layer.

Everything involved in invoking the external generator process and making
sense of what it prints.

Key classes:
    CommandResolver      - executable + base args for dev / packaged builds
    ProcessExecutor      - spawn, timeout, capture
    ResponseInterpreter  - JSON -> exit status -> failure text chain
    GeneratorBridge      - generate / preview request paths
"""

from .arguments import GENERATE_ACTION, PREVIEW_ACTION, build_arguments
from .client import GeneratorBridge
from .command import CommandResolver, HostPlatform, ResolvedCommand
from .executor import ProcessExecutor
from .interpreter import ResponseInterpreter

__all__ = [
    # Command resolution
    "CommandResolver",
    "HostPlatform",
    "ResolvedCommand",
    # Arguments
    "build_arguments",
    "GENERATE_ACTION",
    "PREVIEW_ACTION",
    # Execution and interpretation
    "ProcessExecutor",
    "ResponseInterpreter",
    # Request paths
    "GeneratorBridge",
]
