from typing import List, Optional, Sequence

from .errors import (
    InvalidLocalAddress,
    InvalidProgramCounter,
    InvalidStackAddress,
    StackOverflow,
    StackUnderflow,
)
from ..utils.int_ops import to_int32

DEFAULT_STACK_CAPACITY = 100
EMPTY_STACK = -1  # Stack pointer value when no slot is occupied


class MachineState:
    """
    Owns the operand stack, the locals region and the three machine registers.

    The stack pointer is the index of the topmost occupied slot (EMPTY_STACK
    when empty). The frame pointer marks the base of the current procedure's
    window; arguments sit below it and are reached with negative offsets.
    The instruction stream is borrowed from the caller and only ever read.
    Every access is bounds-checked and raises a VMFault subclass.
    """

    def __init__(
        self,
        code: Sequence[int],
        entry: int = 0,
        locals_size: int = 0,
        stack_capacity: int = DEFAULT_STACK_CAPACITY,
    ):
        if stack_capacity < 0:
            raise ValueError(f"stack_capacity must be non-negative, got {stack_capacity}")
        if locals_size < 0:
            raise ValueError(f"locals_size must be non-negative, got {locals_size}")

        self.code = code
        self.entry = entry
        self.stack_capacity = stack_capacity
        self.stack: List[int] = [0] * stack_capacity
        self.locals: List[int] = [0] * locals_size

        self.pc = entry
        self.sp = EMPTY_STACK
        self.fp = 0
        self.call_depth = 0

    # --- Operand stack ---

    def push(self, value: int) -> None:
        if self.sp + 1 >= self.stack_capacity:
            raise StackOverflow(self.stack_capacity)
        self.sp += 1
        self.stack[self.sp] = to_int32(value)

    def pop(self) -> int:
        if self.sp <= EMPTY_STACK:
            raise StackUnderflow()
        value = self.stack[self.sp]
        self.sp -= 1
        return value

    def peek(self, index: int = 0) -> int:
        """Access stack item without popping (0 is top)."""
        if index < 0 or index > self.sp:
            raise StackUnderflow(needed=index + 1, available=self.stack_depth)
        return self.stack[self.sp - index]

    def drop(self, count: int = 1) -> None:
        """Discard ``count`` values by moving the stack pointer down."""
        if count < 0 or count > self.stack_depth:
            raise StackUnderflow(needed=count, available=self.stack_depth)
        self.sp -= count

    def rewind_to(self, index: int) -> None:
        """Move the stack pointer down to ``index``, e.g. back to a frame base."""
        if index < EMPTY_STACK or index > self.sp:
            raise InvalidStackAddress(index, index - self.fp, self.sp)
        self.sp = index

    @property
    def stack_depth(self) -> int:
        return self.sp + 1

    def snapshot_stack(self) -> List[int]:
        """Copy of the occupied stack slots, bottom first."""
        return self.stack[: self.sp + 1]

    # --- Instruction stream ---

    def fetch_next(self) -> int:
        """Return the value at the program counter and advance past it."""
        if not 0 <= self.pc < len(self.code):
            raise InvalidProgramCounter(self.pc, len(self.code))
        value = self.code[self.pc]
        self.pc += 1
        return value

    # --- Locals region (absolute addressing) ---

    def _check_local(self, address: int) -> None:
        if not 0 <= address < len(self.locals):
            raise InvalidLocalAddress(address, len(self.locals))

    def read_local(self, address: int) -> int:
        self._check_local(address)
        return self.locals[address]

    def write_local(self, address: int, value: int) -> None:
        self._check_local(address)
        self.locals[address] = to_int32(value)

    # --- Frame-relative stack access ---

    def _resolve_relative(self, offset: int) -> int:
        index = self.fp + offset
        if not 0 <= index <= self.sp:
            raise InvalidStackAddress(index, offset, self.sp)
        return index

    def read_stack_relative(self, offset: int) -> int:
        return self.stack[self._resolve_relative(offset)]

    def write_stack_relative(self, offset: int, value: int) -> None:
        self.stack[self._resolve_relative(offset)] = to_int32(value)

    # --- Misc ---

    def reset(self, entry: Optional[int] = None) -> None:
        """Return registers and storage to their initial state."""
        if entry is not None:
            self.entry = entry
        self.pc = self.entry
        self.sp = EMPTY_STACK
        self.fp = 0
        self.call_depth = 0
        for i in range(len(self.stack)):
            self.stack[i] = 0
        for i in range(len(self.locals)):
            self.locals[i] = 0

    def __repr__(self) -> str:
        return f"MachineState(pc={self.pc}, sp={self.sp}, fp={self.fp})"
