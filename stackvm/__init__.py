"""
Stack-based bytecode interpreter.
"""

# Machine core
from .core.machine import MachineState, DEFAULT_STACK_CAPACITY
from .core.interpreter import Interpreter, RunState, ExecutionResult, run_program
from .core.frame import CallFrame, walk_frames, backtrace

# Faults
from .core.errors import (
    FaultKind,
    VMFault,
    StackOverflow,
    StackUnderflow,
    DivisionByZero,
    InvalidProgramCounter,
    InvalidLocalAddress,
    InvalidStackAddress,
    UnknownOpcode,
    StepLimitExceeded,
)

# Utilities
from .core.opcodes import Opcode, disassemble, format_instruction, get_operand_count
from .config import VMConfig
from .programs import fibonacci_program, add_and_print_program

__version__ = "0.1.0"

__all__ = [
    # Core
    "MachineState",
    "DEFAULT_STACK_CAPACITY",
    "Interpreter",
    "RunState",
    "ExecutionResult",
    "run_program",
    "CallFrame",
    "walk_frames",
    "backtrace",
    # Faults
    "FaultKind",
    "VMFault",
    "StackOverflow",
    "StackUnderflow",
    "DivisionByZero",
    "InvalidProgramCounter",
    "InvalidLocalAddress",
    "InvalidStackAddress",
    "UnknownOpcode",
    "StepLimitExceeded",
    # Utilities
    "Opcode",
    "disassemble",
    "format_instruction",
    "get_operand_count",
    "VMConfig",
    "fibonacci_program",
    "add_and_print_program",
]
