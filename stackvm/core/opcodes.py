"""
Opcode definitions and utilities for the stack machine.
"""

from enum import IntEnum
from typing import List, Optional, Sequence, Tuple


class Opcode(IntEnum):
    """Stack machine opcodes"""

    # Binary arithmetic
    ADD = 1
    SUB = 2
    MUL = 3
    DIV = 4

    # Comparisons
    LT = 5
    GT = 6
    EQ = 7

    # Branches
    JMP = 8
    JMPT = 9
    JMPF = 10

    # Constants and variables
    CONST = 11
    LOAD = 12
    GLOAD = 13
    STORE = 14
    GSTORE = 15

    PRINT = 16
    POP = 17
    HALT = 18

    # Procedures
    CALL = 19
    RET = 20


# Map from opcode value to name
OPCODE_NAMES = {int(code): name for name, code in Opcode.__members__.items()}

# Map from opcode to number of operands that follow it in the instruction stream
OPERAND_COUNTS = {
    Opcode.ADD: 0,
    Opcode.SUB: 0,
    Opcode.MUL: 0,
    Opcode.DIV: 0,
    Opcode.LT: 0,
    Opcode.GT: 0,
    Opcode.EQ: 0,
    Opcode.JMP: 1,  # target
    Opcode.JMPT: 1,  # target
    Opcode.JMPF: 1,  # target
    Opcode.CONST: 1,  # value
    Opcode.LOAD: 1,  # frame offset
    Opcode.GLOAD: 0,
    Opcode.STORE: 1,  # frame offset
    Opcode.GSTORE: 1,  # global address
    Opcode.PRINT: 0,
    Opcode.POP: 0,
    Opcode.HALT: 0,
    Opcode.CALL: 2,  # target, argument count
    Opcode.RET: 0,
}


def get_operand_count(opcode: int) -> int:
    """
    Get the number of inline operands an opcode consumes.

    Unknown opcodes consume none.
    """
    return OPERAND_COUNTS.get(opcode, 0)


def disassemble(code: Sequence[int]) -> List[Tuple[str, int, List[int], int]]:
    """
    Disassemble an instruction stream into a list of operations.

    Args:
        code: Sequence of integers (opcodes interleaved with their operands)

    Returns:
        List of tuples (opcode_name, opcode_value, operands, offset)
    """
    operations = []
    i = 0

    while i < len(code):
        opcode_value = code[i]
        offset = i
        i += 1

        opcode_name = OPCODE_NAMES.get(opcode_value, f"UNKNOWN_{opcode_value}")

        count = get_operand_count(opcode_value)
        # A truncated stream yields whatever operands remain
        operands = list(code[i : i + count])
        i += len(operands)

        operations.append((opcode_name, opcode_value, operands, offset))

    return operations


def format_instruction(
    operation: Tuple[str, int, List[int], int], width: Optional[int] = None
) -> str:
    """Render one disassembled operation as ``offset: NAME op1 op2``."""
    name, _, operands, offset = operation
    prefix = f"{offset:>{width}}" if width else str(offset)
    text = " ".join([name] + [str(op) for op in operands])
    return f"{prefix}: {text}"
