"""
Fault taxonomy for the stack machine.

Every fault is local to one machine instance and ends its execution. The
interpreter catches ``VMFault`` and records it on the execution result; the
machine state itself raises at the point where the violation is detected.
"""

from enum import Enum
from typing import Optional


class FaultKind(Enum):
    STACK_OVERFLOW = "StackOverflow"
    STACK_UNDERFLOW = "StackUnderflow"
    DIVISION_BY_ZERO = "DivisionByZero"
    INVALID_PROGRAM_COUNTER = "InvalidProgramCounter"
    INVALID_LOCAL_ADDRESS = "InvalidLocalAddress"
    INVALID_STACK_ADDRESS = "InvalidStackAddress"
    UNKNOWN_OPCODE = "UnknownOpcode"
    STEP_LIMIT_EXCEEDED = "StepLimitExceeded"


class VMFault(Exception):
    """Base class for unrecoverable machine faults."""

    kind: FaultKind

    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.pc = pc

    def to_dict(self) -> dict:
        """Flatten the fault into key-value pairs for structured logging."""
        data = {"fault": self.kind.value, "message": self.message}
        if self.pc is not None:
            data["pc"] = self.pc
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, pc={self.pc})"


class StackOverflow(VMFault):
    kind = FaultKind.STACK_OVERFLOW

    def __init__(self, capacity: int, pc: Optional[int] = None):
        super().__init__(f"Stack overflow: capacity of {capacity} slots exceeded", pc)
        self.capacity = capacity

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["capacity"] = self.capacity
        return data


class StackUnderflow(VMFault):
    kind = FaultKind.STACK_UNDERFLOW

    def __init__(
        self,
        pc: Optional[int] = None,
        needed: int = 1,
        available: int = 0,
        detail: Optional[str] = None,
    ):
        super().__init__(
            detail or f"Stack underflow: needed {needed} value(s), {available} available",
            pc,
        )
        self.needed = needed
        self.available = available


class DivisionByZero(VMFault):
    kind = FaultKind.DIVISION_BY_ZERO

    def __init__(self, dividend: int, pc: Optional[int] = None):
        super().__init__(f"Division by zero: {dividend} / 0", pc)
        self.dividend = dividend


class InvalidProgramCounter(VMFault):
    kind = FaultKind.INVALID_PROGRAM_COUNTER

    def __init__(self, pc: int, code_size: int):
        super().__init__(
            f"Program counter {pc} outside instruction stream of {code_size} values", pc
        )
        self.code_size = code_size

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["code_size"] = self.code_size
        return data


class InvalidLocalAddress(VMFault):
    kind = FaultKind.INVALID_LOCAL_ADDRESS

    def __init__(self, address: int, size: int, pc: Optional[int] = None):
        super().__init__(
            f"Global address {address} outside locals region of {size} slots", pc
        )
        self.address = address
        self.size = size

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(address=self.address, size=self.size)
        return data


class InvalidStackAddress(VMFault):
    kind = FaultKind.INVALID_STACK_ADDRESS

    def __init__(self, index: int, offset: int, stack_pointer: int, pc: Optional[int] = None):
        super().__init__(
            f"Frame-relative offset {offset} resolves to stack index {index}, "
            f"outside occupied range 0..{stack_pointer}",
            pc,
        )
        self.index = index
        self.offset = offset
        self.stack_pointer = stack_pointer

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(index=self.index, offset=self.offset, sp=self.stack_pointer)
        return data


class UnknownOpcode(VMFault):
    kind = FaultKind.UNKNOWN_OPCODE

    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__(f"Unknown opcode {opcode}", pc)
        self.opcode = opcode

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["opcode"] = self.opcode
        return data


class StepLimitExceeded(VMFault):
    kind = FaultKind.STEP_LIMIT_EXCEEDED

    def __init__(self, max_steps: int, pc: Optional[int] = None):
        super().__init__(f"Step budget of {max_steps} instructions exhausted", pc)
        self.max_steps = max_steps
