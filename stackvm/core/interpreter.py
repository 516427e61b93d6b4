# core/interpreter.py
import dataclasses
import sys
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, TextIO

import structlog

from .errors import DivisionByZero, StackUnderflow, StepLimitExceeded, UnknownOpcode, VMFault
from .frame import FRAME_OVERHEAD, CallFrame, backtrace
from .machine import DEFAULT_STACK_CAPACITY, MachineState
from .opcodes import OPCODE_NAMES, Opcode, get_operand_count
from ..utils.int_ops import vm_add, vm_div, vm_eq, vm_gt, vm_lt, vm_mul, vm_sub

logger = structlog.get_logger()

# Binary operators: right operand is popped first, left second
BINARY_OPERATIONS: Dict[int, Callable[[int, int], int]] = {
    Opcode.ADD: vm_add,
    Opcode.SUB: vm_sub,
    Opcode.MUL: vm_mul,
    Opcode.DIV: vm_div,
    Opcode.LT: vm_lt,
    Opcode.GT: vm_gt,
    Opcode.EQ: vm_eq,
}


class RunState(Enum):
    RUNNING = "Running"
    HALTED = "Halted"
    FAULTED = "Faulted"


@dataclasses.dataclass
class ExecutionResult:
    """Final state of one run, handed back to the host."""

    state: RunState
    steps: int
    pc: int
    stack: List[int] = dataclasses.field(default_factory=list)
    fault: Optional[VMFault] = None
    frames: List[CallFrame] = dataclasses.field(default_factory=list)

    @property
    def halted(self) -> bool:
        return self.state is RunState.HALTED

    @property
    def faulted(self) -> bool:
        return self.state is RunState.FAULTED

    @property
    def top(self) -> Optional[int]:
        return self.stack[-1] if self.stack else None

    def __repr__(self) -> str:
        reason = f"({self.fault.kind.value})" if self.fault else ""
        return f"ExecutionResult({self.state.value}{reason}, steps={self.steps}, stack={self.stack})"


class Interpreter:
    """
    Dispatch loop over a MachineState.

    Each cycle fetches one opcode and mutates the machine according to it.
    The loop stops on HALT or on the first VMFault; a stopped interpreter
    never executes another instruction.

    Usage:
        machine = MachineState(code, entry=38)
        result = Interpreter(machine).run()
        assert result.halted
    """

    def __init__(self, machine: MachineState, output: Optional[TextIO] = None, trace: bool = False):
        self.machine = machine
        self.output = output if output is not None else sys.stdout
        self.trace = trace
        self.state = RunState.RUNNING
        self.fault: Optional[VMFault] = None
        self.steps = 0

    # --- Execution ---

    def step(self) -> RunState:
        """Execute one instruction and return the resulting state."""
        if self.state is not RunState.RUNNING:
            return self.state

        start_pc = self.machine.pc
        try:
            opcode = self.machine.fetch_next()
            if self.trace:
                self._trace_instruction(start_pc, opcode)
            self._execute(opcode)
        except VMFault as fault:
            if fault.pc is None:
                fault.pc = start_pc
            self._enter_fault(fault)
        else:
            self.steps += 1
        return self.state

    def run(self, max_steps: Optional[int] = None) -> ExecutionResult:
        """
        Run until HALT, a fault, or the step budget is spent.

        Args:
            max_steps: Maximum instructions to dispatch; None for unbounded

        Returns:
            ExecutionResult describing the terminal state
        """
        if self.trace:
            logger.debug(
                "Run started",
                pc=self.machine.pc,
                code_size=len(self.machine.code),
                max_steps=max_steps,
            )
        while self.state is RunState.RUNNING:
            if max_steps is not None and self.steps >= max_steps:
                self._enter_fault(StepLimitExceeded(max_steps, self.machine.pc))
                break
            self.step()

        result = self.result()
        if self.trace:
            logger.debug("Run finished", state=result.state.value, steps=result.steps, pc=result.pc)
        return result

    def result(self) -> ExecutionResult:
        return ExecutionResult(
            state=self.state,
            steps=self.steps,
            pc=self.machine.pc,
            stack=self.machine.snapshot_stack(),
            fault=self.fault,
            frames=backtrace(self.machine) if self.fault is not None else [],
        )

    def _enter_fault(self, fault: VMFault) -> None:
        self.state = RunState.FAULTED
        self.fault = fault
        if self.trace:
            logger.debug("Machine faulted", **fault.to_dict())

    # --- Instruction handlers ---

    def _execute(self, opcode: int) -> None:
        m = self.machine

        if opcode in BINARY_OPERATIONS:
            right = m.pop()
            left = m.pop()
            if opcode == Opcode.DIV and right == 0:
                raise DivisionByZero(left)
            m.push(BINARY_OPERATIONS[opcode](left, right))
        # Control flow
        elif opcode == Opcode.JMP:
            m.pc = m.fetch_next()
        elif opcode == Opcode.JMPT:
            target = m.fetch_next()
            if m.pop() != 0:
                m.pc = target
        elif opcode == Opcode.JMPF:
            target = m.fetch_next()
            if m.pop() == 0:
                m.pc = target
        # Constants and variables
        elif opcode == Opcode.CONST:
            m.push(m.fetch_next())
        elif opcode == Opcode.LOAD:
            offset = m.fetch_next()
            m.push(m.read_stack_relative(offset))
        elif opcode == Opcode.STORE:
            offset = m.fetch_next()
            value = m.pop()
            m.write_stack_relative(offset, value)
        elif opcode == Opcode.GLOAD:
            address = m.pop()
            m.push(m.read_local(address))
        elif opcode == Opcode.GSTORE:
            value = m.pop()
            address = m.fetch_next()
            m.write_local(address, value)
        # I/O and stack housekeeping
        elif opcode == Opcode.PRINT:
            self.output.write(f"{m.pop()}\n")
        elif opcode == Opcode.POP:
            m.drop(1)
        elif opcode == Opcode.HALT:
            self.state = RunState.HALTED
        # Procedures
        elif opcode == Opcode.CALL:
            self._call()
        elif opcode == Opcode.RET:
            self._return()
        else:
            raise UnknownOpcode(opcode)

    def _call(self) -> None:
        """
        CALL target, arg_count

        Push order: arg_count, caller fp, return pc. The callee's frame
        pointer is the slot holding the return pc, so the arguments pushed
        by the caller sit at offsets -3, -4, ... below it.
        """
        m = self.machine
        target = m.fetch_next()
        arg_count = m.fetch_next()
        if not 0 <= arg_count <= m.stack_depth:
            raise StackUnderflow(needed=arg_count, available=m.stack_depth)

        m.push(arg_count)
        m.push(m.fp)
        m.push(m.pc)
        m.fp = m.sp
        m.pc = target
        m.call_depth += 1

    def _return(self) -> None:
        """
        RET

        Unwinds the frame built by CALL: restores pc and fp, discards the
        caller's arguments and leaves the return value in their place.
        """
        m = self.machine
        if m.call_depth == 0:
            raise StackUnderflow(
                needed=FRAME_OVERHEAD,
                available=0,
                detail="RET executed with no active call frame",
            )

        return_value = m.pop()
        m.rewind_to(m.fp)
        m.pc = m.pop()
        m.fp = m.pop()
        arg_count = m.pop()
        m.drop(arg_count)
        m.push(return_value)
        m.call_depth -= 1

    # --- Trace ---

    def _trace_instruction(self, pc: int, opcode: int) -> None:
        m = self.machine
        count = get_operand_count(opcode)
        operands = list(m.code[m.pc : m.pc + count])
        logger.debug(
            "Executing instruction",
            pc=pc,
            op=OPCODE_NAMES.get(opcode, f"UNKNOWN_{opcode}"),
            operands=operands,
            sp=m.sp,
            fp=m.fp,
            depth=m.call_depth,
        )


def run_program(
    code: Sequence[int],
    entry: int = 0,
    locals_size: int = 0,
    stack_capacity: int = DEFAULT_STACK_CAPACITY,
    output: Optional[TextIO] = None,
    max_steps: Optional[int] = None,
    trace: bool = False,
) -> ExecutionResult:
    """Build a machine for ``code`` and run it to completion."""
    machine = MachineState(code, entry=entry, locals_size=locals_size, stack_capacity=stack_capacity)
    interpreter = Interpreter(machine, output=output, trace=trace)
    return interpreter.run(max_steps=max_steps)
