from .errors import (
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
from .opcodes import Opcode, disassemble, format_instruction, get_operand_count
from .machine import MachineState, DEFAULT_STACK_CAPACITY, EMPTY_STACK
from .frame import CallFrame, walk_frames, backtrace
from .interpreter import Interpreter, RunState, ExecutionResult, run_program
